"""
Stripe webhook endpoint.
"""
from flask import current_app, request
from flask_restx import Resource, fields

from library_api.errors import PersistenceError, ValidationError

from . import webhook_ns

# Upper bound on accepted webhook bodies
MAX_PAYLOAD_BYTES = 64 * 1024

webhook_response_model = webhook_ns.model('WebhookResponse', {
    'status': fields.String(description='Acknowledgement status'),
})


@webhook_ns.route('/webhook')
class StripeWebhook(Resource):
    """Resource receiving Stripe events"""

    @webhook_ns.doc('stripe_webhook', security=None, params={
        'Stripe-Signature': {'in': 'header', 'description': 'Stripe webhook signature', 'required': True},
    })
    @webhook_ns.response(400, 'Malformed payload')
    @webhook_ns.response(401, 'Invalid signature')
    @webhook_ns.marshal_with(webhook_response_model)
    def post(self):
        """Verify and apply a Stripe event"""
        if request.content_length is not None and request.content_length > MAX_PAYLOAD_BYTES:
            raise ValidationError("Webhook payload too large")
        payload = request.get_data(cache=False)
        if len(payload) > MAX_PAYLOAD_BYTES:
            raise ValidationError("Webhook payload too large")

        provider = current_app.extensions['payment_provider']
        event = provider.construct_event(payload, request.headers.get('Stripe-Signature'))
        current_app.logger.info("Received Stripe event %s (%s)", event.id, event.type)

        try:
            current_app.extensions['subscriptions'].handle_event(event)
        except PersistenceError:
            current_app.logger.exception("Failed to apply Stripe event %s", event.id)

        return {'status': 'success'}
