"""Core services: wallet ledger, reputation and the job lifecycle engine"""
from .policy import MarketplacePolicy, get_policy
from .ledger import Ledger
from .reputation import Reputation
from .lifecycle import JobLifecycleEngine, get_engine

__all__ = [
    'MarketplacePolicy',
    'get_policy',
    'Ledger',
    'Reputation',
    'JobLifecycleEngine',
    'get_engine',
]
