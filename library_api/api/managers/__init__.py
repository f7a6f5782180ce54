"""
Managers namespace for manager accounts.
"""
from flask_restx import Namespace

manager_ns = Namespace(
    'managers',
    description='Manager account operations'
)

from . import routes
