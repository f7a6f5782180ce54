"""
System user model for authentication, roles and the payment-customer link.
"""
from enum import Enum

from werkzeug.security import check_password_hash, generate_password_hash

from library_api import db

from .base import BaseModel


class UserRole(Enum):
    """Enum for user role values."""
    SUPERUSER = "superuser"
    MANAGER = "manager"
    STUDENT = "student"


STAFF_ROLES = (UserRole.SUPERUSER.value, UserRole.MANAGER.value)


class User(BaseModel):
    """
    System user shared by superusers, managers and students.

    Attributes:
        name (str): Display name
        email (str): User's email address (unique, used for login)
        password_hash (str): Hashed password
        role (str): One of the UserRole values
        is_superuser (bool): Whether the user has superuser privileges
        stripe_customer_id (str): Cached payment-provider customer id
    """
    __tablename__ = 'system_users'

    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=UserRole.STUDENT.value, index=True)
    is_superuser = db.Column(db.Boolean, nullable=False, default=False)
    stripe_customer_id = db.Column(db.String(255), nullable=True)

    # Relationships
    subscriptions = db.relationship('SubscriptionInstance', back_populates='user', lazy='dynamic', passive_deletes=True)

    def __init__(self, name, email, password, role=UserRole.STUDENT.value, is_superuser=False):
        """
        Initialize a new User instance.

        Args:
            name (str): User's display name
            email (str): User's email
            password (str): User's password (will be hashed)
            role (str, optional): User role value
            is_superuser (bool, optional): Superuser flag
        """
        self.name = name
        self.email = email
        self.password_hash = generate_password_hash(password)
        self.role = role
        self.is_superuser = is_superuser

    def check_password(self, password):
        """
        Verify a password against the stored hash.

        Args:
            password (str): Password to check

        Returns:
            bool: True if password matches, False otherwise
        """
        return check_password_hash(self.password_hash, password)

    @property
    def is_staff(self):
        return self.role in STAFF_ROLES

    def to_dict(self):
        data = super().to_dict()
        data.pop('password_hash', None)
        return data

    def __repr__(self):
        """String representation of the User model."""
        return f"<User {self.email} ({self.role})>"
