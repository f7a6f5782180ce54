"""
Books namespace for the library catalog.
"""
from flask_restx import Namespace

book_ns = Namespace(
    'books',
    description='Book catalog operations'
)

from . import routes
