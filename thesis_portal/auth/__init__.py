"""
Auth Blueprint

Staff sign-in using Flask-Login.
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

from thesis_portal.auth import routes  # noqa: E402, F401
