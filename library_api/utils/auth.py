"""
Authentication utilities and decorators.
"""
from functools import wraps

from flask_jwt_extended import get_jwt, get_jwt_identity

from library_api.errors import ForbiddenError
from library_api.models import STAFF_ROLES, UserRole


def roles_required(*roles):
    """
    Decorator to check that the current token carries one of the given roles.
    Must be used after jwt_required() decorator.

    Args:
        *roles (str): Allowed UserRole values

    Returns:
        function: Decorator function
    """
    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            # Role is issued as an additional claim at login
            claims = get_jwt()
            if claims.get('role') not in roles:
                raise ForbiddenError()
            return fn(*args, **kwargs)
        return decorator
    return wrapper


def ensure_owner_or_roles(owner_user_id, *roles):
    """
    Allow the user owning a resource, or any of the given roles.
    Must be called inside a jwt_required() view.

    Raises:
        ForbiddenError: If the caller is neither the owner nor in a role
    """
    if get_jwt().get('role') in roles or get_jwt_identity() == str(owner_user_id):
        return
    raise ForbiddenError()


def staff_required():
    """Allow superusers and managers."""
    return roles_required(*STAFF_ROLES)


def superuser_required():
    return roles_required(UserRole.SUPERUSER.value)
