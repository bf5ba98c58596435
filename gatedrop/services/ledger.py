"""
Wallet ledger.

Every balance change is one conditional UPDATE on a single users row, so
the read-check-write of a debit cannot interleave with a concurrent credit
or debit of the same user. Amounts are Decimals in whole cents and the
stored balance is rounded to cents on every write, on backends without a
native decimal type too. The ledger never commits; the caller owns the
transaction.
"""
import logging

from sqlalchemy import func, select, update

from gatedrop.errors import BelowMinimum, InsufficientFunds, NotFound, ValidationError
from gatedrop.models import User
from gatedrop.utils import to_money

logger = logging.getLogger(__name__)


def _require_positive(amount):
    money = to_money(amount)
    if money is None:
        raise ValidationError("Amount must be a number")
    if money <= 0:
        raise ValidationError("Amount must be greater than zero")
    return money


class Ledger:

    def __init__(self, session, policy):
        self.session = session
        self.policy = policy

    def balance(self, user_id):
        balance = self.session.execute(
            select(User.wallet_balance).where(User.id == user_id)
        ).scalar_one_or_none()
        if balance is None:
            raise NotFound("User not found")
        return balance

    def credit(self, user_id, amount):
        """Add ``amount`` to the user's wallet and return the new balance."""
        amount = _require_positive(amount)
        result = self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(wallet_balance=func.round(User.wallet_balance + amount, 2))
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise NotFound("User not found")
        new_balance = self.balance(user_id)
        logger.info("Credited %.2f to user %s (balance %.2f)", amount, user_id, new_balance)
        return new_balance

    def debit(self, user_id, amount):
        """
        Remove ``amount`` from the user's wallet and return the new balance.

        Raises InsufficientFunds, leaving the balance untouched, when the
        current balance is lower than ``amount``.
        """
        amount = _require_positive(amount)
        result = self.session.execute(
            update(User)
            .where(User.id == user_id, User.wallet_balance >= amount)
            .values(wallet_balance=func.round(User.wallet_balance - amount, 2))
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            current = self.balance(user_id)
            raise InsufficientFunds(
                "Insufficient balance. Current balance: {:.2f}".format(current)
            )
        new_balance = self.balance(user_id)
        logger.info("Debited %.2f from user %s (balance %.2f)", amount, user_id, new_balance)
        return new_balance

    def cashout(self, user_id, amount):
        """Withdraw to the user's payout destination; the payout itself is external."""
        amount = _require_positive(amount)
        if amount < self.policy.min_cashout_amount:
            raise BelowMinimum(
                "Minimum cashout amount is {:.2f}".format(self.policy.min_cashout_amount)
            )
        return self.debit(user_id, amount)
