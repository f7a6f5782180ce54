"""
Subscription plans and the subscription lifecycle.

Plans are mirrored on Stripe as a product plus an immutable price. Instances
start as pending/open when a student subscribes and only move forward through
verified webhook events.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from library_api.errors import ForbiddenError, LibraryError, ProviderError, ValidationError
from library_api.models import (
    PaymentStatus,
    RecurrenceKind,
    SubscriptionInstance,
    SubscriptionPlan,
    SubscriptionStatus,
    UserRole,
)
from library_api.services.payments import to_minor_units

logger = logging.getLogger(__name__)

CORRELATION_KEY = 'subscription_instance_id'

_PLAN_TEXT_FIELDS = ('title', 'description')
_PLAN_FIELDS = _PLAN_TEXT_FIELDS + ('recurrence', 'price')


def parse_id(value, field_name):
    """
    Parse an integer identifier supplied by a client or a provider.

    Raises:
        ValidationError: If the value is missing or not an integer
    """
    if value is None or value == '':
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer") from None


def _parse_text(data, field_name):
    value = data.get(field_name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def _parse_recurrence(value):
    try:
        return RecurrenceKind(value)
    except ValueError:
        allowed = ', '.join(kind.value for kind in RecurrenceKind)
        raise ValidationError(f"recurrence must be one of: {allowed}") from None


def _parse_price(value):
    if value is None or isinstance(value, bool):
        raise ValidationError("price is required")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("price must be a number") from None
    if not price.is_finite() or price <= 0:
        raise ValidationError("price must be a positive number")
    return price.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


class PlanService:
    """Create, change and remove subscription plans and their Stripe objects."""

    def __init__(self, plans, provider, currency='usd'):
        self.plans = plans
        self.provider = provider
        self.currency = currency

    def list_plans(self):
        return self.plans.find_many(order_by=SubscriptionPlan.id)

    def get_plan(self, plan_id):
        return self.plans.get_or_raise(plan_id, "Subscription plan not found")

    def _mint_price(self, product_id, price, recurrence):
        interval, interval_count = recurrence.provider_interval
        return self.provider.create_price(
            product_id, to_minor_units(price), self.currency, interval, interval_count
        )

    def _discard_product(self, product_id):
        try:
            self.provider.delete_product(product_id)
        except ProviderError:
            logger.error("Orphaned Stripe product %s needs manual cleanup", product_id)

    def create_plan(self, data):
        """
        Create a plan backed by a new Stripe product and price.

        Args:
            data (dict): title, description, recurrence and price

        Returns:
            SubscriptionPlan: The stored plan
        """
        title = _parse_text(data, 'title')
        description = _parse_text(data, 'description')
        recurrence = _parse_recurrence(data.get('recurrence'))
        price = _parse_price(data.get('price'))

        product_id = self.provider.create_product(title, description)
        try:
            price_id = self._mint_price(product_id, price, recurrence)
            plan = SubscriptionPlan(
                title=title,
                description=description,
                recurrence=recurrence.value,
                price=price,
                product_id=product_id,
                price_id=price_id,
            )
            plan_id = self.plans.insert_one(plan)
        except LibraryError:
            self._discard_product(product_id)
            raise

        logger.info("Created subscription plan %s (product %s, price %s)", plan_id, product_id, price_id)
        return self.plans.get_or_raise(plan_id)

    def update_plan(self, plan_id, data):
        """
        Apply a partial update to a plan.

        A change of price or recurrence mints a new Stripe price on the
        existing product; the old price is left to expire.

        Args:
            plan_id (int): Plan to update
            data (dict): Any of title, description, recurrence, price

        Returns:
            SubscriptionPlan: The updated plan
        """
        plan = self.get_plan(plan_id)
        if all(data.get(name) is None for name in _PLAN_FIELDS):
            raise ValidationError("No changes supplied")

        values = {}
        for field_name in _PLAN_TEXT_FIELDS:
            if data.get(field_name) is not None:
                values[field_name] = _parse_text(data, field_name)

        recurrence = plan.recurrence_kind
        if data.get('recurrence') is not None:
            recurrence = _parse_recurrence(data['recurrence'])
        price = Decimal(plan.price)
        if data.get('price') is not None:
            price = _parse_price(data['price'])

        if recurrence is not plan.recurrence_kind or price != Decimal(plan.price):
            values['recurrence'] = recurrence.value
            values['price'] = price
            values['price_id'] = self._mint_price(plan.product_id, price, recurrence)
            logger.info("Plan %s moved to price %s", plan.id, values['price_id'])

        # Re-sending current values is a no-op
        if not values:
            return plan

        self.plans.update_one({'id': plan.id}, values)
        return self.get_plan(plan.id)

    def delete_plan(self, plan_id):
        """Remove the Stripe product, then the plan row."""
        plan = self.get_plan(plan_id)
        self.provider.delete_product(plan.product_id)
        self.plans.delete_one({'id': plan.id})
        logger.info("Deleted subscription plan %s", plan_id)


class SubscriptionService:
    """Student subscriptions and their reconciliation with Stripe events."""

    def __init__(self, instances, users, plans, provider, success_url, cancel_url):
        self.instances = instances
        self.users = users
        self.plans = plans
        self.provider = provider
        self.success_url = success_url
        self.cancel_url = cancel_url
        self._handlers = {
            'checkout.session.completed': self._on_checkout_completed,
            'checkout.session.async_payment_succeeded': self._on_checkout_completed,
            'checkout.session.expired': self._on_checkout_expired,
            'checkout.session.async_payment_failed': self._on_async_payment_failed,
            'invoice.paid': self._on_invoice_paid,
            'invoice.payment_failed': self._on_invoice_payment_failed,
            'customer.subscription.deleted': self._on_subscription_deleted,
        }

    def list_mine(self, user_id):
        return self.instances.find_many({'user_id': user_id}, order_by=SubscriptionInstance.id.desc())

    def ensure_customer(self, user):
        """
        Return the user's Stripe customer id, creating one if needed.

        A stored id that Stripe no longer knows is replaced. The new id is
        written only if the stored value has not changed in the meantime;
        otherwise the concurrent writer's id wins.

        Args:
            user (User): The subscribing user

        Returns:
            str: The customer id to use
        """
        current = user.stripe_customer_id
        if current:
            if self.provider.customer_exists(current):
                return current
            logger.warning("Stripe customer %s for user %s is gone; creating a new one", current, user.id)

        user_id, email, name = user.id, user.email, user.name
        customer_id = self.provider.create_customer(email, name)
        if self.users.update_one({'id': user_id, 'stripe_customer_id': current}, {'stripe_customer_id': customer_id}):
            return customer_id

        winner = self.users.get_or_raise(user_id).stripe_customer_id
        logger.error(
            "Orphaned Stripe customer %s: user %s was already linked to %s", customer_id, user_id, winner
        )
        return winner

    def subscribe(self, user, plan_id):
        """
        Start a subscription and create its hosted checkout session.

        Args:
            user (User): The subscribing user; must be a student
            plan_id: Plan to subscribe to

        Returns:
            SubscriptionInstance: The pending instance with its payment link
        """
        if user.role != UserRole.STUDENT.value:
            raise ForbiddenError("Only students can subscribe")

        plan = self.plans.get_or_raise(parse_id(plan_id, 'plan_id'), "Subscription plan not found")
        price_id = plan.price_id
        mode = 'subscription' if plan.is_recurring else 'payment'

        customer_id = self.ensure_customer(user)
        instance_id = self.instances.insert_one(
            SubscriptionInstance(user_id=user.id, plan_id=plan.id, price_id=price_id, customer_id=customer_id)
        )

        try:
            session = self.provider.create_checkout_session(
                customer_id=customer_id,
                price_id=price_id,
                mode=mode,
                success_url=self.success_url,
                cancel_url=self.cancel_url,
                metadata={CORRELATION_KEY: str(instance_id)},
            )
        except ProviderError:
            logger.error("Checkout session creation failed for subscription instance %s", instance_id)
            self.instances.update_one({'id': instance_id}, {'payment_status': PaymentStatus.FAILED.value})
            raise

        self.instances.update_one({'id': instance_id}, {
            'payment_link': session.url,
            'checkout_session_id': session.id,
            'customer_id': session.customer_id,
        })
        logger.info("Subscription instance %s awaiting payment (session %s)", instance_id, session.id)
        return self.instances.get_or_raise(instance_id)

    def handle_event(self, event):
        """
        Apply a verified Stripe event to the matching subscription instance.

        Args:
            event (ProviderEvent): The verified event

        Returns:
            bool: True if an instance was updated
        """
        handler = self._handlers.get(event.type)
        if handler is None:
            logger.info("Ignoring Stripe event %s of type %s", event.id, event.type)
            return False
        updated = handler(event.object)
        if not updated:
            logger.info("Stripe event %s (%s) matched no updatable subscription", event.id, event.type)
        return updated

    def _correlated_id(self, session):
        metadata = session.get('metadata') or {}
        return parse_id(metadata.get(CORRELATION_KEY), CORRELATION_KEY)

    def _optional_correlated_id(self, session):
        """Correlation key of a session, or None if it is not one of ours."""
        try:
            return self._correlated_id(session)
        except ValidationError:
            logger.info("Checkout session %s carries no subscription instance id", session.get('id'))
            return None

    def _on_checkout_completed(self, session):
        if session.get('payment_status') != 'paid' or session.get('status') != 'complete':
            logger.info("Checkout session %s is not paid yet", session.get('id'))
            return False

        instance_id = self._correlated_id(session)
        values = {
            'payment_status': PaymentStatus.PAID.value,
            'status': SubscriptionStatus.SUBSCRIBED.value,
        }
        subscription_id = _object_id(session.get('subscription'))
        if subscription_id:
            values['stripe_subscription_id'] = subscription_id
        return bool(self.instances.update_one(
            {'id': instance_id, 'status': SubscriptionStatus.PENDING.value}, values
        ))

    def _on_checkout_expired(self, session):
        instance_id = self._optional_correlated_id(session)
        if instance_id is None:
            return False
        return bool(self.instances.update_one(
            {'id': instance_id, 'status': SubscriptionStatus.PENDING.value},
            {'status': SubscriptionStatus.EXPIRED.value, 'payment_status': PaymentStatus.FAILED.value},
        ))

    def _on_async_payment_failed(self, session):
        instance_id = self._optional_correlated_id(session)
        if instance_id is None:
            return False
        return bool(self.instances.update_one(
            {'id': instance_id, 'status': SubscriptionStatus.PENDING.value},
            {'payment_status': PaymentStatus.FAILED.value},
        ))

    def _on_invoice_paid(self, invoice):
        if invoice.get('billing_reason') != 'subscription_cycle':
            return False
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            return False
        return bool(self.instances.update_one(
            {
                'stripe_subscription_id': subscription_id,
                'status': {'$in': [SubscriptionStatus.SUBSCRIBED.value, SubscriptionStatus.IN_RECURRING.value]},
            },
            {'status': SubscriptionStatus.IN_RECURRING.value, 'payment_status': PaymentStatus.PAID.value},
        ))

    def _on_invoice_payment_failed(self, invoice):
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            return False
        return bool(self.instances.update_one(
            {'stripe_subscription_id': subscription_id},
            {'payment_status': PaymentStatus.FAILED.value},
        ))

    def _on_subscription_deleted(self, subscription):
        subscription_id = subscription.get('id')
        if not subscription_id:
            return False
        return bool(self.instances.update_one(
            {'stripe_subscription_id': subscription_id, 'status': {'$ne': SubscriptionStatus.CANCELLED.value}},
            {'status': SubscriptionStatus.CANCELLED.value},
        ))


def _object_id(value):
    """Stripe fields may hold an id or an expanded object."""
    if isinstance(value, dict):
        return value.get('id')
    return value


def _invoice_subscription_id(invoice):
    # Newer API versions moved the subscription under parent.subscription_details
    subscription_id = _object_id(invoice.get('subscription'))
    if subscription_id:
        return subscription_id
    details = (invoice.get('parent') or {}).get('subscription_details') or {}
    return _object_id(details.get('subscription'))
