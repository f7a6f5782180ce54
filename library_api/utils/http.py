"""
Request parsing helpers shared by the route modules.
"""
from flask import request

from library_api.errors import ValidationError


def json_body():
    """
    Return the request's JSON object body.

    Raises:
        ValidationError: If the body is missing or not a JSON object
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
