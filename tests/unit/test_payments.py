"""
Unit tests for the Stripe provider client.
"""
import json
import time
from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe

from conftest import WEBHOOK_SECRET, sign_payload, stripe_event
from library_api.errors import AuthenticationError, ProviderError, ValidationError
from library_api.services.payments import StripeProvider, to_minor_units


@pytest.fixture
def provider():
    return StripeProvider(api_key='sk_test_unit', webhook_secret=WEBHOOK_SECRET, tolerance=300)


@pytest.mark.parametrize("amount, expected", [
    (9.99, 999),
    ("19.99", 1999),
    (Decimal("0.005"), 1),
    (Decimal("10.125"), 1013),
    (5, 500),
])
def test_to_minor_units_rounds_half_up(amount, expected):
    assert to_minor_units(amount) == expected


def test_to_minor_units_rejects_garbage():
    with pytest.raises(ValidationError):
        to_minor_units("ten dollars")


def test_create_price_passes_recurrence(provider, monkeypatch):
    captured = {}

    def fake_create(**params):
        captured.update(params)
        return SimpleNamespace(id='price_123')

    monkeypatch.setattr(stripe.Price, 'create', fake_create)

    assert provider.create_price('prod_1', 999, 'usd', 'month', 3) == 'price_123'
    assert captured['unit_amount'] == 999
    assert captured['recurring'] == {'interval': 'month', 'interval_count': 3}
    assert captured['api_key'] == 'sk_test_unit'


def test_create_one_time_price_has_no_recurrence(provider, monkeypatch):
    captured = {}

    def fake_create(**params):
        captured.update(params)
        return SimpleNamespace(id='price_once')

    monkeypatch.setattr(stripe.Price, 'create', fake_create)

    provider.create_price('prod_1', 500, 'usd')
    assert 'recurring' not in captured


def test_stripe_errors_become_provider_errors(provider, monkeypatch):
    def failing_create(**params):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.Product, 'create', failing_create)

    with pytest.raises(ProviderError):
        provider.create_product('Gold', 'Gold tier')


def test_unconfigured_provider_refuses_calls():
    with pytest.raises(ProviderError):
        StripeProvider(api_key=None).create_customer('a@example.com')


def test_customer_exists(provider, monkeypatch):
    customers = {
        'cus_live': SimpleNamespace(id='cus_live'),
        'cus_deleted': SimpleNamespace(id='cus_deleted', deleted=True),
    }

    def fake_retrieve(customer_id, **params):
        if customer_id not in customers:
            raise stripe.InvalidRequestError("No such customer", 'id', code='resource_missing')
        return customers[customer_id]

    monkeypatch.setattr(stripe.Customer, 'retrieve', fake_retrieve)

    assert provider.customer_exists('cus_live') is True
    assert provider.customer_exists('cus_deleted') is False
    assert provider.customer_exists('cus_unknown') is False


def test_delete_product_archives_when_prices_exist(provider, monkeypatch):
    modified = {}

    def fake_delete(product_id, **params):
        raise stripe.InvalidRequestError("This product has prices", None)

    def fake_modify(product_id, **params):
        modified[product_id] = params
        return SimpleNamespace(id=product_id, active=False)

    monkeypatch.setattr(stripe.Product, 'delete', fake_delete)
    monkeypatch.setattr(stripe.Product, 'modify', fake_modify)

    provider.delete_product('prod_1')
    assert modified['prod_1']['active'] is False


def test_create_checkout_session(provider, monkeypatch):
    captured = {}

    def fake_create(**params):
        captured.update(params)
        return SimpleNamespace(id='cs_1', url='https://checkout.stripe.com/c/cs_1')

    monkeypatch.setattr(stripe.checkout.Session, 'create', fake_create)

    session = provider.create_checkout_session(
        'cus_1', 'price_1', 'subscription', 'https://ok', 'https://cancel', {'subscription_instance_id': '7'}
    )
    assert session.id == 'cs_1'
    assert session.url == 'https://checkout.stripe.com/c/cs_1'
    assert session.customer_id == 'cus_1'
    assert captured['line_items'] == [{'price': 'price_1', 'quantity': 1}]
    assert captured['metadata'] == {'subscription_instance_id': '7'}
    assert captured['mode'] == 'subscription'


def test_construct_event_accepts_valid_signature(provider):
    payload = json.dumps(stripe_event('checkout.session.completed', {'id': 'cs_1', 'metadata': {}}))

    event = provider.construct_event(payload.encode('utf-8'), sign_payload(payload))

    assert event.id == 'evt_test_1'
    assert event.type == 'checkout.session.completed'
    assert event.object['id'] == 'cs_1'


@pytest.mark.parametrize("signature", [
    None,
    '',
    't=1,v1=deadbeef',
    'garbage',
])
def test_construct_event_rejects_bad_signatures(provider, signature):
    payload = json.dumps(stripe_event('checkout.session.completed', {}))
    with pytest.raises(AuthenticationError):
        provider.construct_event(payload.encode('utf-8'), signature)


def test_construct_event_rejects_wrong_secret(provider):
    payload = json.dumps(stripe_event('checkout.session.completed', {}))
    with pytest.raises(AuthenticationError):
        provider.construct_event(payload.encode('utf-8'), sign_payload(payload, secret='whsec_other'))


def test_construct_event_rejects_stale_timestamp(provider):
    payload = json.dumps(stripe_event('checkout.session.completed', {}))
    stale = sign_payload(payload, timestamp=int(time.time()) - 3600)
    with pytest.raises(AuthenticationError):
        provider.construct_event(payload.encode('utf-8'), stale)


def test_construct_event_requires_secret():
    provider = StripeProvider(api_key='sk_test_unit', webhook_secret=None)
    payload = json.dumps(stripe_event('checkout.session.completed', {}))
    with pytest.raises(AuthenticationError):
        provider.construct_event(payload.encode('utf-8'), sign_payload(payload))


def test_construct_event_rejects_non_event_json(provider):
    payload = json.dumps(['not', 'an', 'event'])
    with pytest.raises(ValidationError):
        provider.construct_event(payload.encode('utf-8'), sign_payload(payload))
