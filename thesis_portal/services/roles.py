"""
Role Resolution

The effective role of a signed-in identity is looked up in two steps:

1. the identity's Active system_users row, if any, gives the role;
2. otherwise a legacy profile role of 'admin' gives Admin.

Anything else is a Reader. Lookup errors are raised, not defaulted.
"""

import logging

from flask import g
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from thesis_portal.errors import FetchError
from thesis_portal.extensions import db
from thesis_portal.models import AccountStatus, Role, SystemUser

logger = logging.getLogger(__name__)

DEFAULT_ROLE = Role.READER


def lookup_system_role(identity_id):
    """Step 1: role from the identity's Active system account, or None."""
    try:
        account = db.session.query(SystemUser).filter_by(
            user_id=identity_id, status=AccountStatus.ACTIVE.value
        ).first()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception('Error fetching role for %s', identity_id)
        raise FetchError('Failed to fetch user permissions.') from exc
    if account is None:
        return None
    return Role(account.role)


def profile_role(identity):
    """Step 2: role implied by the legacy profile field, or None."""
    if (identity.profile_role or '').lower() == 'admin':
        return Role.ADMIN
    return None


def resolve_role(identity):
    role = lookup_system_role(identity.id)
    if role is None:
        role = profile_role(identity)
    if role is None:
        logger.debug('No role found for %s, using %s', identity.id, DEFAULT_ROLE.value)
        role = DEFAULT_ROLE
    return role


def current_role():
    """Role of the signed-in user for this request, or None when signed out."""
    user_id = current_user.get_id() if current_user.is_authenticated else None
    cached = g.get('user_role')
    if cached is None or cached[0] != user_id:
        g.user_role = (user_id, resolve_role(current_user) if user_id else None)
    return g.user_role[1]


def is_admin(role):
    return role == Role.ADMIN
