"""
Subscription plan and subscription instance models.
"""
from enum import Enum

from sqlalchemy import Index

from library_api import db

from .base import BaseModel


class RecurrenceKind(Enum):
    """Enum for plan billing recurrence."""
    NO_RECURRING = "no_recurring"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def provider_interval(self):
        """
        Billing interval understood by the payment provider.

        Returns:
            tuple: (interval, interval_count), or (None, None) for one-time prices
        """
        return _PROVIDER_INTERVALS[self]


_PROVIDER_INTERVALS = {
    RecurrenceKind.NO_RECURRING: (None, None),
    RecurrenceKind.MONTHLY: ("month", 1),
    RecurrenceKind.QUARTERLY: ("month", 3),
    RecurrenceKind.YEARLY: ("year", 1),
}


class SubscriptionStatus(Enum):
    """Enum for subscription status values."""
    PENDING = "pending"
    SUBSCRIBED = "subscribed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    IN_RECURRING = "in_recurring"


class PaymentStatus(Enum):
    """Enum for payment status values."""
    OPEN = "open"
    PAID = "paid"
    FAILED = "failed"


class SubscriptionPlan(BaseModel):
    """
    A purchasable subscription tier backed by a provider product and price.

    Attributes:
        title (str): Plan title
        description (str): Plan description
        recurrence (str): RecurrenceKind value
        price (Decimal): Price in currency units
        product_id (str): Provider product id
        price_id (str): Provider price id for the current price/recurrence pair
    """
    __tablename__ = 'subscription_plans'

    title = db.Column(db.String(120), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    recurrence = db.Column(db.String(20), nullable=False, default=RecurrenceKind.MONTHLY.value)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    product_id = db.Column(db.String(255), nullable=False)
    price_id = db.Column(db.String(255), nullable=False)

    # Relationships
    instances = db.relationship('SubscriptionInstance', back_populates='plan', lazy='dynamic')

    @property
    def recurrence_kind(self):
        return RecurrenceKind(self.recurrence)

    @property
    def is_recurring(self):
        return self.recurrence_kind is not RecurrenceKind.NO_RECURRING

    def __repr__(self):
        """String representation of the SubscriptionPlan model."""
        return f"<SubscriptionPlan {self.title} - ${self.price} ({self.recurrence})>"


class SubscriptionInstance(BaseModel):
    """
    One user's subscription to one plan, tracked through payment confirmation.

    Attributes:
        user_id (int): Foreign key to User
        plan_id (int): Foreign key to SubscriptionPlan (None once the plan is deleted)
        customer_id (str): Provider customer id used for the checkout
        price_id (str): Provider price id snapshotted at subscribe time
        checkout_session_id (str): Provider checkout session id
        stripe_subscription_id (str): Provider subscription id, set on payment confirmation
        payment_status (str): PaymentStatus value
        status (str): SubscriptionStatus value
        payment_link (str): Hosted checkout URL
    """
    __tablename__ = 'subscription_instances'

    user_id = db.Column(db.Integer, db.ForeignKey('system_users.id', ondelete='CASCADE'), nullable=False)
    # Nulled when the plan is deleted; price_id keeps what was bought
    plan_id = db.Column(db.Integer, db.ForeignKey('subscription_plans.id', ondelete='SET NULL'), nullable=True)
    customer_id = db.Column(db.String(255), nullable=True)
    price_id = db.Column(db.String(255), nullable=False)
    checkout_session_id = db.Column(db.String(255), nullable=True)
    stripe_subscription_id = db.Column(db.String(255), nullable=True)
    payment_status = db.Column(db.String(20), nullable=False, default=PaymentStatus.OPEN.value)
    status = db.Column(db.String(20), nullable=False, default=SubscriptionStatus.PENDING.value)
    payment_link = db.Column(db.String(1024), nullable=True)

    # Relationships
    user = db.relationship('User', back_populates='subscriptions')
    plan = db.relationship('SubscriptionPlan', back_populates='instances')

    __table_args__ = (
        # Index for querying a user's subscriptions
        Index('idx_subscription_instance_user_id', 'user_id'),

        # Index for webhook lookups by provider subscription
        Index('idx_subscription_instance_stripe_sub', 'stripe_subscription_id'),

        # Composite index for a user's subscriptions by status
        Index('idx_subscription_instance_user_status', 'user_id', 'status'),
    )

    def __init__(self, user_id, plan_id, price_id, customer_id=None,
                 status=SubscriptionStatus.PENDING.value,
                 payment_status=PaymentStatus.OPEN.value):
        """
        Initialize a new SubscriptionInstance.

        Args:
            user_id (int): Owning user ID
            plan_id (int): Plan ID
            price_id (str): Provider price id snapshot
            customer_id (str, optional): Provider customer id
            status (str, optional): Subscription status
            payment_status (str, optional): Payment status
        """
        self.user_id = user_id
        self.plan_id = plan_id
        self.price_id = price_id
        self.customer_id = customer_id
        self.status = status
        self.payment_status = payment_status

    @property
    def is_active(self):
        """
        Check if the subscription currently grants access.

        Returns:
            bool: True if subscribed or renewing, False otherwise
        """
        return self.status in (SubscriptionStatus.SUBSCRIBED.value, SubscriptionStatus.IN_RECURRING.value)

    def __repr__(self):
        """String representation of the SubscriptionInstance model."""
        return f"<SubscriptionInstance User:{self.user_id} Plan:{self.plan_id} Status:{self.status}>"
