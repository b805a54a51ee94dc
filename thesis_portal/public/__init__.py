"""
Public Blueprint

The thesis submission form, open to everyone.
"""

from flask import Blueprint

public_bp = Blueprint('public', __name__)

from thesis_portal.public import routes  # noqa: E402, F401
