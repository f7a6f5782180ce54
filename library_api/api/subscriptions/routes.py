"""
Routes for subscription plans and student subscriptions.
"""
from flask import current_app
from flask_jwt_extended import current_user, jwt_required
from flask_restx import Resource, fields

from library_api.models import PaymentStatus, RecurrenceKind, SubscriptionStatus, UserRole
from library_api.utils.auth import roles_required, staff_required
from library_api.utils.http import json_body

from . import subscription_ns

# Define the subscription plan model for API
plan_model = subscription_ns.model('SubscriptionPlan', {
    'id': fields.Integer(description='Plan ID'),
    'title': fields.String(description='Plan title'),
    'description': fields.String(description='Plan description'),
    'recurrence': fields.String(description='Billing recurrence',
                                enum=[kind.value for kind in RecurrenceKind]),
    'price': fields.Float(description='Price in currency units'),
    'product_id': fields.String(description='Stripe product ID'),
    'price_id': fields.String(description='Current Stripe price ID'),
    'created_at': fields.DateTime(description='Creation date'),
    'updated_at': fields.DateTime(description='Last update date'),
})

# Input model for creating plans
plan_input_model = subscription_ns.model('SubscriptionPlanInput', {
    'title': fields.String(required=True, description='Plan title'),
    'description': fields.String(required=True, description='Plan description'),
    'recurrence': fields.String(required=True, description='Billing recurrence',
                                enum=[kind.value for kind in RecurrenceKind]),
    'price': fields.Float(required=True, description='Price in currency units, e.g. 9.99'),
})

# Input model for partial plan updates
plan_update_model = subscription_ns.model('SubscriptionPlanUpdate', {
    'title': fields.String(description='Plan title'),
    'description': fields.String(description='Plan description'),
    'recurrence': fields.String(description='Billing recurrence',
                                enum=[kind.value for kind in RecurrenceKind]),
    'price': fields.Float(description='Price in currency units'),
})

# Define the subscription instance model for API
subscription_model = subscription_ns.model('SubscriptionInstance', {
    'id': fields.Integer(description='Subscription ID'),
    'user_id': fields.Integer(description='User ID'),
    'plan_id': fields.Integer(description='Plan ID'),
    'customer_id': fields.String(description='Stripe customer ID'),
    'price_id': fields.String(description='Stripe price ID bought'),
    'checkout_session_id': fields.String(description='Stripe checkout session ID'),
    'stripe_subscription_id': fields.String(description='Stripe subscription ID'),
    'payment_status': fields.String(description='Payment status',
                                    enum=[s.value for s in PaymentStatus]),
    'status': fields.String(description='Subscription status',
                            enum=[s.value for s in SubscriptionStatus]),
    'payment_link': fields.String(description='Hosted checkout URL'),
    'created_at': fields.DateTime(description='Creation date'),
    'updated_at': fields.DateTime(description='Last update date'),
})

# Input model for subscribing
subscribe_input_model = subscription_ns.model('SubscribeInput', {
    'plan_id': fields.Integer(required=True, description='Plan ID to subscribe to'),
})

message_model = subscription_ns.model('SubscriptionMessage', {
    'message': fields.String(description='Result message'),
})


def _plans():
    return current_app.extensions['plans']


def _subscriptions():
    return current_app.extensions['subscriptions']


@subscription_ns.route('/')
class SubscriptionPlanList(Resource):
    """Resource for listing and creating subscription plans"""

    @subscription_ns.doc('list_plans')
    @subscription_ns.marshal_list_with(plan_model)
    @jwt_required()
    def get(self):
        """List all subscription plans"""
        return _plans().list_plans()

    @subscription_ns.doc('create_plan')
    @subscription_ns.expect(plan_input_model)
    @subscription_ns.response(400, 'Validation error')
    @subscription_ns.response(500, 'Payment provider error')
    @subscription_ns.marshal_with(plan_model, code=201)
    @jwt_required()
    @staff_required()
    def post(self):
        """Create a new subscription plan (staff only)"""
        plan = _plans().create_plan(json_body())
        return plan, 201


@subscription_ns.route('/<int:id>')
@subscription_ns.param('id', 'The subscription plan identifier')
@subscription_ns.response(404, 'Subscription plan not found')
class SubscriptionPlanResource(Resource):
    """Resource for individual subscription plan operations"""

    @subscription_ns.doc('get_plan')
    @subscription_ns.marshal_with(plan_model)
    @jwt_required()
    def get(self, id):
        """Get a specific subscription plan"""
        return _plans().get_plan(id)

    @subscription_ns.doc('update_plan')
    @subscription_ns.expect(plan_update_model)
    @subscription_ns.response(400, 'Validation error')
    @subscription_ns.marshal_with(plan_model)
    @jwt_required()
    @staff_required()
    def put(self, id):
        """Update a subscription plan; a new price or recurrence mints a new Stripe price (staff only)"""
        return _plans().update_plan(id, json_body())

    @subscription_ns.doc('delete_plan')
    @subscription_ns.response(500, 'Payment provider error')
    @subscription_ns.marshal_with(message_model)
    @jwt_required()
    @staff_required()
    def delete(self, id):
        """Delete a subscription plan and its Stripe product (staff only)"""
        _plans().delete_plan(id)
        return {'message': 'Subscription plan deleted'}


@subscription_ns.route('/student/subscribe')
class StudentSubscribe(Resource):
    """Resource for students subscribing to a plan"""

    @subscription_ns.doc('subscribe')
    @subscription_ns.expect(subscribe_input_model)
    @subscription_ns.response(400, 'Validation error')
    @subscription_ns.response(403, 'Only students can subscribe')
    @subscription_ns.marshal_with(subscription_model, code=201)
    @jwt_required()
    @roles_required(UserRole.STUDENT.value)
    def post(self):
        """Subscribe to a plan and receive a checkout link"""
        data = json_body()
        instance = _subscriptions().subscribe(current_user, data.get('plan_id'))
        return instance, 201


@subscription_ns.route('/student/mine')
class StudentSubscriptions(Resource):
    """Resource for the caller's own subscriptions"""

    @subscription_ns.doc('my_subscriptions')
    @subscription_ns.marshal_list_with(subscription_model)
    @jwt_required()
    def get(self):
        """List the current user's subscriptions, newest first"""
        return _subscriptions().list_mine(current_user.id)
