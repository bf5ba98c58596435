"""
Marketplace policy thresholds.

Lifted out of the transition logic so that fee floors and the ban limit can
be changed through configuration alone.
"""
from dataclasses import dataclass
from decimal import Decimal

from gatedrop.utils import to_money


@dataclass(frozen=True)
class MarketplacePolicy:
    min_job_fee: Decimal = Decimal('30.00')
    min_cashout_amount: Decimal = Decimal('100.00')
    # A runner is banned once their report count goes above this value
    ban_report_threshold: int = 2

    @classmethod
    def from_config(cls, config):
        return cls(
            min_job_fee=cls._amount(config, 'MIN_JOB_FEE', cls.min_job_fee),
            min_cashout_amount=cls._amount(config, 'MIN_CASHOUT_AMOUNT', cls.min_cashout_amount),
            ban_report_threshold=int(config.get('BAN_REPORT_THRESHOLD', cls.ban_report_threshold)),
        )

    @staticmethod
    def _amount(config, key, default):
        amount = to_money(config.get(key, default))
        if amount is None:
            raise ValueError('{} must be a number'.format(key))
        return amount


def get_policy():
    """The policy registered on the current app by create_app()."""
    from flask import current_app

    return current_app.extensions['gatedrop.policy']
