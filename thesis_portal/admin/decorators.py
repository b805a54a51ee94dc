"""
Admin Decorators

Every dashboard route needs a signed-in staff member. Admin-only routes
additionally check the role resolved for the current request.
"""

from functools import wraps

from flask import abort
from flask_login import login_required

from thesis_portal.services.roles import current_role, is_admin


def staff_required(f):
    """Require a signed-in user; Readers and Admins both pass."""
    @wraps(f)
    @login_required
    def wrapper(*args, **kwargs):
        current_role()
        return f(*args, **kwargs)
    return wrapper


def admin_required(f):
    """Require the Admin role. Readers get 403 Access Restricted."""
    @wraps(f)
    @login_required
    def wrapper(*args, **kwargs):
        if not is_admin(current_role()):
            abort(403)
        return f(*args, **kwargs)
    return wrapper
