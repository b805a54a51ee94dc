"""
Services Package

Exports all services for easy importing.
"""

from thesis_portal.services.accounts import (
    authenticate, create_system_user, ensure_bootstrap_admin, record_login, search_users,
)
from thesis_portal.services.catalog import find_titles, ingest_csv, search_catalog, soft_delete_entry
from thesis_portal.services.roles import current_role, is_admin, resolve_role
from thesis_portal.services.statistics import compute_statistics
from thesis_portal.services.submissions import build_submission

__all__ = [
    'authenticate',
    'create_system_user',
    'ensure_bootstrap_admin',
    'record_login',
    'search_users',
    'find_titles',
    'ingest_csv',
    'search_catalog',
    'soft_delete_entry',
    'current_role',
    'is_admin',
    'resolve_role',
    'compute_statistics',
    'build_submission',
]
