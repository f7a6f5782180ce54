"""
Models package for SQLAlchemy database models.
"""
from .base import BaseModel
from .book import Book
from .member import Manager, Student
from .subscription import (
    PaymentStatus,
    RecurrenceKind,
    SubscriptionInstance,
    SubscriptionPlan,
    SubscriptionStatus,
)
from .token_blacklist import TokenBlacklist
from .user import STAFF_ROLES, User, UserRole

__all__ = [
    'BaseModel',
    'Book',
    'Manager',
    'PaymentStatus',
    'RecurrenceKind',
    'STAFF_ROLES',
    'Student',
    'SubscriptionInstance',
    'SubscriptionPlan',
    'SubscriptionStatus',
    'TokenBlacklist',
    'User',
    'UserRole',
]
