"""
Subscriptions namespace for subscription plans and student subscriptions.
"""
from flask_restx import Namespace

subscription_ns = Namespace(
    'subscriptions',
    description='Subscription plans and student subscription operations'
)

from . import routes
