from .users import User, SessionToken
from .activity import WalkSession
from .ledger import Transaction
from .purchases import MetroTicket, RewardRedemption

__all__ = [
    'User', 'SessionToken',
    'WalkSession',
    'Transaction',
    'MetroTicket', 'RewardRedemption',
]
