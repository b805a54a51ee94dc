"""
Admin Blueprint

Staff dashboard: statistics, user records, thesis data and system users.
"""

from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

from thesis_portal.admin import routes  # noqa: E402, F401
