"""
Routes for manager accounts.
"""
from flask import current_app
from flask_jwt_extended import jwt_required
from flask_restx import Resource, fields

from library_api.models import UserRole
from library_api.utils.auth import ensure_owner_or_roles, staff_required, superuser_required
from library_api.utils.http import json_body

from . import manager_ns

manager_model = manager_ns.model('Manager', {
    'id': fields.Integer(description='Manager profile ID'),
    'system_user_id': fields.Integer(description='Login user ID'),
    'first_name': fields.String(description='First name'),
    'last_name': fields.String(description='Last name'),
    'email': fields.String(description='Email address'),
    'manager_id': fields.String(description='Staff number'),
    'created_at': fields.DateTime(description='Creation date'),
    'updated_at': fields.DateTime(description='Last update date'),
})

manager_register_model = manager_ns.model('ManagerRegister', {
    'first_name': fields.String(required=True, description='First name'),
    'last_name': fields.String(required=True, description='Last name'),
    'email': fields.String(required=True, description='Email address, used to log in'),
    'password': fields.String(required=True, description='Password'),
    'manager_id': fields.String(description='Staff number'),
})

manager_update_model = manager_ns.model('ManagerUpdate', {
    'first_name': fields.String(description='First name'),
    'last_name': fields.String(description='Last name'),
    'email': fields.String(description='Email address'),
    'manager_id': fields.String(description='Staff number'),
})

message_model = manager_ns.model('ManagerMessage', {
    'message': fields.String(description='Result message'),
})


def _managers():
    return current_app.extensions['managers']


@manager_ns.route('/')
class ManagerList(Resource):
    """Resource for creating and listing managers"""

    @manager_ns.doc('register_manager')
    @manager_ns.expect(manager_register_model)
    @manager_ns.response(400, 'Validation error')
    @manager_ns.response(403, 'Superuser privileges required')
    @manager_ns.response(409, 'Email already registered')
    @manager_ns.marshal_with(manager_model, code=201)
    @jwt_required()
    @superuser_required()
    def post(self):
        """Create a manager account (superuser only)"""
        manager = _managers().register(json_body())
        current_app.logger.info("Manager %s created", manager.id)
        return manager, 201

    @manager_ns.doc('list_managers')
    @manager_ns.marshal_list_with(manager_model)
    @jwt_required()
    @staff_required()
    def get(self):
        """List all managers (staff only)"""
        return _managers().list()


@manager_ns.route('/<int:id>')
@manager_ns.param('id', 'The manager profile identifier')
@manager_ns.response(404, 'Manager not found')
class ManagerResource(Resource):
    """Resource for individual manager operations"""

    @manager_ns.doc('get_manager')
    @manager_ns.marshal_with(manager_model)
    @jwt_required()
    @staff_required()
    def get(self, id):
        """Get a manager (staff only)"""
        return _managers().get(id)

    @manager_ns.doc('update_manager')
    @manager_ns.expect(manager_update_model)
    @manager_ns.marshal_with(manager_model)
    @jwt_required()
    def put(self, id):
        """Replace a manager's profile (superuser or the manager)"""
        manager = _managers().get(id)
        ensure_owner_or_roles(manager.system_user_id, UserRole.SUPERUSER.value)
        return _managers().replace(id, json_body())

    @manager_ns.doc('patch_manager')
    @manager_ns.expect(manager_update_model)
    @manager_ns.marshal_with(manager_model)
    @jwt_required()
    def patch(self, id):
        """Partially update a manager's profile (superuser or the manager)"""
        manager = _managers().get(id)
        ensure_owner_or_roles(manager.system_user_id, UserRole.SUPERUSER.value)
        return _managers().patch(id, json_body())

    @manager_ns.doc('delete_manager')
    @manager_ns.marshal_with(message_model)
    @jwt_required()
    @superuser_required()
    def delete(self, id):
        """Delete a manager and their login (superuser only)"""
        _managers().delete(id)
        return {'message': 'Manager deleted'}
