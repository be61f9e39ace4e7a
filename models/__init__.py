# models/__init__.py
from .base import Base

from .user import User
from .couple import Couple
from .proposal import Proposal
from .swipe import Swipe
from .match import Match
from .plan import Plan
from .daily_usage import DailyUsage
from .notification import PushNotification

__all__ = [
    "Base",
    "User",
    "Couple",
    "Proposal",
    "Swipe",
    "Match",
    "Plan",
    "DailyUsage",
    "PushNotification",
]
