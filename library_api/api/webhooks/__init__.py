"""
Webhooks namespace for inbound Stripe events.
"""
from flask_restx import Namespace

webhook_ns = Namespace(
    'webhooks',
    description='Payment provider notifications',
    path='/'
)

from . import routes
