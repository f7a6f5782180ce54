"""
Authentication namespace for registration, login and token handling.
"""
from flask_restx import Namespace

auth_ns = Namespace(
    'auth',
    description='Authentication operations'
)

from . import routes
