"""
Stripe payment provider client.

Every remote failure surfaces as ``ProviderError``; nothing here retries.
"""
import json
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import stripe

from library_api.errors import AuthenticationError, ProviderError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSession:
    id: str
    url: str
    customer_id: str


@dataclass
class ProviderEvent:
    id: str
    type: str
    object: dict = field(default_factory=dict)


def configure_stripe(timeout):
    """
    Apply process-wide Stripe client settings.

    Args:
        timeout (int): Seconds before an HTTP call to Stripe is abandoned
    """
    stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
    stripe.max_network_retries = 0


def to_minor_units(amount):
    """
    Convert a currency amount to integer minor units, rounding half up.

    Args:
        amount: Amount in currency units (Decimal, str, int or float)

    Returns:
        int: Amount in minor units, e.g. 9.99 -> 999
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid amount: {amount!r}") from exc
    return int((value * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class StripeProvider:
    """Thin wrapper around the Stripe SDK returning provider identifiers."""

    def __init__(self, api_key, webhook_secret=None, tolerance=300):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    def _call(self, action, fn, *args, **kwargs):
        if not self.api_key:
            raise ProviderError("Payment provider is not configured")
        try:
            return fn(*args, api_key=self.api_key, **kwargs)
        except stripe.StripeError as exc:
            logger.error("Stripe %s failed: %s", action, exc.user_message or exc)
            raise ProviderError(f"Payment provider error while trying to {action}") from exc

    def create_product(self, name, description=None):
        params = {'name': name}
        if description:
            params['description'] = description
        product = self._call('create product', stripe.Product.create, **params)
        return product.id

    def create_price(self, product_id, amount_minor, currency, interval=None, interval_count=None):
        """
        Create an immutable price for a product.

        Args:
            product_id (str): Product the price belongs to
            amount_minor (int): Amount in minor units
            currency (str): ISO currency code
            interval (str, optional): "month" or "year"; None for a one-time price
            interval_count (int, optional): Number of intervals between charges

        Returns:
            str: The new price id
        """
        params = {
            'product': product_id,
            'unit_amount': amount_minor,
            'currency': currency,
        }
        if interval:
            params['recurring'] = {'interval': interval, 'interval_count': interval_count or 1}
        price = self._call('create price', stripe.Price.create, **params)
        return price.id

    def delete_product(self, product_id):
        """
        Remove a product, archiving it when Stripe refuses deletion.

        Stripe only deletes products that never had a price; products with
        prices are deactivated instead so they can no longer be bought.
        """
        try:
            self._call('delete product', stripe.Product.delete, product_id)
        except ProviderError as exc:
            cause = exc.__cause__
            if not isinstance(cause, stripe.InvalidRequestError):
                raise
            if cause.code == 'resource_missing':
                logger.warning("Stripe product %s was already deleted", product_id)
                return
            self._call('archive product', stripe.Product.modify, product_id, active=False)

    def create_customer(self, email, name=None):
        params = {'email': email}
        if name:
            params['name'] = name
        customer = self._call('create customer', stripe.Customer.create, **params)
        return customer.id

    def customer_exists(self, customer_id):
        """
        Check whether a customer is still usable on the provider side.

        Returns:
            bool: False if the customer was deleted or never existed
        """
        try:
            customer = self._call('retrieve customer', stripe.Customer.retrieve, customer_id)
        except ProviderError as exc:
            cause = exc.__cause__
            if isinstance(cause, stripe.InvalidRequestError) and cause.code == 'resource_missing':
                return False
            raise
        return not getattr(customer, 'deleted', False)

    def create_checkout_session(self, customer_id, price_id, mode, success_url, cancel_url, metadata):
        """
        Create a hosted checkout session for one price.

        Args:
            customer_id (str): Customer paying
            price_id (str): Price being bought
            mode (str): "subscription" for recurring prices, "payment" otherwise
            success_url (str): Redirect after payment
            cancel_url (str): Redirect after cancellation
            metadata (dict): Echoed back in checkout webhook events

        Returns:
            CheckoutSession: Session id, hosted URL and customer id
        """
        session = self._call(
            'create checkout session',
            stripe.checkout.Session.create,
            customer=customer_id,
            line_items=[{'price': price_id, 'quantity': 1}],
            mode=mode,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
        )
        return CheckoutSession(id=session.id, url=session.url, customer_id=customer_id)

    def construct_event(self, payload, signature):
        """
        Verify a webhook signature and parse the event.

        Args:
            payload (bytes): Raw request body
            signature (str): Value of the Stripe-Signature header

        Returns:
            ProviderEvent: The verified event

        Raises:
            AuthenticationError: Secret unset, header missing, or signature invalid
            ValidationError: Payload is not a well-formed event
        """
        if not self.webhook_secret:
            raise AuthenticationError("Webhook secret is not configured")
        if not signature:
            raise AuthenticationError("Missing Stripe-Signature header")
        try:
            text = payload.decode('utf-8') if isinstance(payload, bytes) else payload
        except UnicodeDecodeError as exc:
            raise ValidationError("Webhook payload is not valid UTF-8") from exc

        try:
            stripe.WebhookSignature.verify_header(text, signature, self.webhook_secret, self.tolerance)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Rejected webhook with invalid signature")
            raise AuthenticationError("Invalid webhook signature") from exc

        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ValidationError("Webhook payload is not valid JSON") from exc
        if not isinstance(data, dict) or 'type' not in data:
            raise ValidationError("Webhook payload is not an event")

        inner = data.get('data') or {}
        obj = inner.get('object') if isinstance(inner, dict) else None
        if not isinstance(obj, dict):
            raise ValidationError("Webhook event object is malformed")
        return ProviderEvent(id=data.get('id'), type=data['type'], object=obj)
