"""
Authentication routes.
"""
from flask import current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    current_user,
    get_jwt,
    jwt_required,
)
from flask_restx import Resource, fields

from library_api.errors import ForbiddenError
from library_api.models import TokenBlacklist
from library_api.utils.http import json_body

from . import auth_ns

# Define the superuser registration model for documentation and validation
register_model = auth_ns.model('UserRegistration', {
    'name': fields.String(required=True, description='Display name'),
    'email': fields.String(required=True, description='User email address'),
    'password': fields.String(required=True, description='User password')
})

# Define the login model for documentation and validation
login_model = auth_ns.model('UserLogin', {
    'email': fields.String(required=True, description='User email address'),
    'password': fields.String(required=True, description='User password')
})

# Define the user response model for documentation
user_model = auth_ns.model('User', {
    'id': fields.Integer(description='User identifier'),
    'name': fields.String(description='Display name'),
    'email': fields.String(description='User email address'),
    'role': fields.String(description='User role'),
    'is_superuser': fields.Boolean(description='Superuser flag'),
    'created_at': fields.DateTime(description='Creation timestamp'),
    'updated_at': fields.DateTime(description='Last update timestamp')
})

# Define the token response model for documentation
token_model = auth_ns.model('TokenResponse', {
    'access_token': fields.String(description='JWT access token'),
    'refresh_token': fields.String(description='JWT refresh token'),
    'user': fields.Nested(user_model, description='Authenticated user')
})

# Define the refresh token model for documentation
refresh_token_model = auth_ns.model('RefreshToken', {
    'access_token': fields.String(description='New JWT access token')
})

message_model = auth_ns.model('AuthMessage', {
    'message': fields.String(description='Result message')
})


def issue_tokens(user):
    """Access and refresh tokens carrying the user's role claim."""
    claims = {'role': user.role}
    return {
        'access_token': create_access_token(identity=str(user.id), additional_claims=claims),
        'refresh_token': create_refresh_token(identity=str(user.id), additional_claims=claims),
        'user': user,
    }


@auth_ns.route('/register')
class UserRegistration(Resource):
    """
    Superuser registration endpoint.
    """
    @auth_ns.doc('register_user', security=None)
    @auth_ns.expect(register_model)
    @auth_ns.response(400, 'Validation error')
    @auth_ns.response(403, 'Registration disabled')
    @auth_ns.response(409, 'User already exists')
    @auth_ns.marshal_with(user_model, code=201)
    def post(self):
        """
        Register a new superuser.
        """
        if not current_app.config.get('ALLOW_SUPERUSER_REGISTRATION'):
            raise ForbiddenError("Superuser registration is disabled")
        user = current_app.extensions['accounts'].register_superuser(json_body())
        current_app.logger.info("Superuser %s registered", user.id)
        return user, 201


@auth_ns.route('/login')
class UserLogin(Resource):
    """
    User login endpoint.
    """
    @auth_ns.doc('login_user', security=None)
    @auth_ns.expect(login_model)
    @auth_ns.response(400, 'Validation error')
    @auth_ns.response(401, 'Invalid credentials')
    @auth_ns.marshal_with(token_model)
    def post(self):
        """
        Authenticate a user and generate JWT tokens.
        """
        data = json_body()
        user = current_app.extensions['accounts'].authenticate(data.get('email'), data.get('password'))
        return issue_tokens(user), 200


@auth_ns.route('/logout')
class UserLogout(Resource):
    """
    Logout endpoint revoking the presented token.
    """
    @auth_ns.doc('logout_user')
    @auth_ns.response(401, 'Missing or invalid token')
    @auth_ns.marshal_with(message_model)
    @jwt_required(verify_type=False)
    def post(self):
        """
        Revoke the current access or refresh token.
        """
        TokenBlacklist.revoke(get_jwt())
        return {'message': 'Successfully logged out'}, 200


@auth_ns.route('/refresh')
class TokenRefresh(Resource):
    """
    Token refresh endpoint.
    """
    @auth_ns.doc('refresh_token')
    @auth_ns.response(401, 'Invalid refresh token')
    @auth_ns.marshal_with(refresh_token_model)
    @jwt_required(refresh=True)
    def post(self):
        """
        Generate a new access token using a refresh token.
        """
        new_access_token = create_access_token(
            identity=str(current_user.id), additional_claims={'role': current_user.role}
        )
        return {'access_token': new_access_token}, 200


@auth_ns.route('/me')
class CurrentUser(Resource):
    """
    Current user endpoint.
    """
    @auth_ns.doc('current_user')
    @auth_ns.response(401, 'Missing or invalid token')
    @auth_ns.marshal_with(user_model)
    @jwt_required()
    def get(self):
        """
        Return the authenticated user.
        """
        return current_user
