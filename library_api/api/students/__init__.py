"""
Students namespace for student registration and profiles.
"""
from flask_restx import Namespace

student_ns = Namespace(
    'students',
    description='Student registration and profile operations'
)

from . import routes
