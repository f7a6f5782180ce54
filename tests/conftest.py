"""
Pytest configuration and fixtures.
"""
import hashlib
import hmac
import itertools
import json
import time

import pytest
from flask_jwt_extended import create_access_token

from library_api import create_app
from library_api import db as _db
from library_api.config.testing_config import TestingConfig
from library_api.errors import ProviderError
from library_api.models import UserRole
from library_api.services.payments import CheckoutSession, StripeProvider

WEBHOOK_SECRET = TestingConfig.STRIPE_WEBHOOK_SECRET


class FakeStripeProvider(StripeProvider):
    """
    Stripe provider that keeps objects in memory and records every call.

    Webhook verification is inherited, so signatures are checked exactly as
    in production. Method names added to ``fail_on`` raise ProviderError.
    """

    def __init__(self):
        super().__init__(api_key='sk_test_library', webhook_secret=WEBHOOK_SECRET)
        self.calls = []
        self.fail_on = set()
        self.products = {}
        self.prices = {}
        self.customers = {}
        self.sessions = {}
        self._ids = itertools.count(1)

    def _record(self, method, **params):
        self.calls.append((method, params))
        if method in self.fail_on:
            raise ProviderError(f"Simulated failure in {method}")

    def _new_id(self, prefix):
        return f"{prefix}_test_{next(self._ids)}"

    def calls_to(self, method):
        return [params for name, params in self.calls if name == method]

    def create_product(self, name, description=None):
        self._record('create_product', name=name, description=description)
        product_id = self._new_id('prod')
        self.products[product_id] = {'name': name, 'deleted': False}
        return product_id

    def create_price(self, product_id, amount_minor, currency, interval=None, interval_count=None):
        self._record('create_price', product_id=product_id, amount_minor=amount_minor,
                     currency=currency, interval=interval, interval_count=interval_count)
        price_id = self._new_id('price')
        self.prices[price_id] = {
            'product': product_id,
            'unit_amount': amount_minor,
            'currency': currency,
            'interval': interval,
            'interval_count': interval_count,
        }
        return price_id

    def delete_product(self, product_id):
        self._record('delete_product', product_id=product_id)
        self.products[product_id]['deleted'] = True

    def create_customer(self, email, name=None):
        self._record('create_customer', email=email, name=name)
        customer_id = self._new_id('cus')
        self.customers[customer_id] = {'email': email, 'deleted': False}
        return customer_id

    def customer_exists(self, customer_id):
        self._record('customer_exists', customer_id=customer_id)
        customer = self.customers.get(customer_id)
        return customer is not None and not customer['deleted']

    def create_checkout_session(self, customer_id, price_id, mode, success_url, cancel_url, metadata):
        self._record('create_checkout_session', customer_id=customer_id, price_id=price_id, mode=mode,
                     success_url=success_url, cancel_url=cancel_url, metadata=metadata)
        session_id = self._new_id('cs')
        self.sessions[session_id] = {'customer': customer_id, 'price': price_id, 'metadata': metadata}
        return CheckoutSession(
            id=session_id, url=f"https://checkout.stripe.test/pay/{session_id}", customer_id=customer_id
        )


def sign_payload(payload, secret=WEBHOOK_SECRET, timestamp=None):
    """Build a Stripe-Signature header for a raw payload."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signature = hmac.new(
        secret.encode('utf-8'), f"{timestamp}.{payload}".encode('utf-8'), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def stripe_event(event_type, obj, event_id='evt_test_1'):
    return {'id': event_id, 'object': 'event', 'type': event_type, 'data': {'object': obj}}


def checkout_session_object(instance_id, subscription='sub_test_1', payment_status='paid', status='complete'):
    return {
        'id': 'cs_test_completed',
        'object': 'checkout.session',
        'payment_status': payment_status,
        'status': status,
        'subscription': subscription,
        'metadata': {'subscription_instance_id': str(instance_id)},
    }


@pytest.fixture
def fake_provider():
    """In-memory Stripe provider shared by the app and the test."""
    return FakeStripeProvider()


@pytest.fixture
def app(fake_provider):
    """
    Create a Flask application configured for testing with a fresh database.

    Returns:
        Flask: The Flask application instance.
    """
    app = create_app('testing', payment_provider=fake_provider)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    """
    Create a test client for the Flask application.

    Returns:
        FlaskClient: A test client for the Flask application.
    """
    return app.test_client()


@pytest.fixture
def db(app):
    """
    Fixture for the SQLAlchemy database object.

    Returns:
        SQLAlchemy db: The database object for testing.
    """
    return _db


def _auth(user):
    token = create_access_token(identity=str(user.id), additional_claims={'role': user.role})
    return {
        'user_id': user.id,
        'token': token,
        'headers': {'Authorization': f'Bearer {token}'},
    }


@pytest.fixture
def superuser_auth(app):
    """Create a superuser and generate an access token."""
    user = app.extensions['accounts'].create_user(
        'Root Admin', 'admin@example.com', 'password123',
        role=UserRole.SUPERUSER.value, is_superuser=True,
    )
    return _auth(user)


@pytest.fixture
def manager_auth(app):
    """Create a manager profile and generate an access token."""
    manager = app.extensions['managers'].register({
        'first_name': 'Maria', 'last_name': 'Lopez', 'email': 'manager@example.com',
        'password': 'password123', 'manager_id': 'M-001',
    })
    auth = _auth(app.extensions['accounts'].get_user(manager.system_user_id))
    auth['profile_id'] = manager.id
    return auth


@pytest.fixture
def student_auth(app):
    """Create a student profile and generate an access token."""
    student = app.extensions['students'].register({
        'first_name': 'Sam', 'last_name': 'Reader', 'email': 'student@example.com',
        'password': 'password123', 'student_id': 'S-001',
    })
    auth = _auth(app.extensions['accounts'].get_user(student.system_user_id))
    auth['profile_id'] = student.id
    return auth


@pytest.fixture
def post_webhook(client):
    """Send a signed Stripe event to the webhook endpoint."""
    def _post(event, signature=None):
        payload = json.dumps(event)
        headers = {'Stripe-Signature': signature if signature is not None else sign_payload(payload)}
        return client.post('/webhook', data=payload, content_type='application/json', headers=headers)
    return _post
