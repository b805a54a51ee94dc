"""
Staff Account Services

Creating a system user also creates the paired sign-in identity; both rows
are written in one transaction so a failure leaves neither behind.
"""

import logging
import secrets
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from thesis_portal.errors import FetchError, PermissionDenied, ValidationError
from thesis_portal.extensions import db
from thesis_portal.models import AccountStatus, AuthIdentity, Role, SystemUser

logger = logging.getLogger(__name__)


def search_users(users, term):
    """Filter account snapshots by a name or email substring."""
    needle = (term or '').strip().lower()
    if not needle:
        return list(users)
    return [u for u in users if needle in u.name.lower() or needle in u.email.lower()]


def create_system_user(name, email, role, status, actor_role, hash_method='pbkdf2:sha256', password=None):
    """Create a staff account and return (snapshot, temporary_password)."""
    if actor_role != Role.ADMIN:
        raise PermissionDenied("You don't have permission to add users.", required_role=Role.ADMIN.value)

    name = (name or '').strip()
    email = (email or '').strip().lower()
    errors = {}
    if not name:
        errors['name'] = 'Full name is required.'
    if not email or '@' not in email:
        errors['email'] = 'Please provide a valid email address.'
    if role not in {r.value for r in Role}:
        errors['role'] = 'Role must be Admin or Reader.'
    if status not in {s.value for s in AccountStatus}:
        errors['status'] = 'Status must be Active or Inactive.'
    if errors:
        raise ValidationError(errors)

    if db.session.query(AuthIdentity).filter_by(email=email).first():
        raise ValidationError({'email': 'A user with this email already exists.'})

    password = password or secrets.token_urlsafe(12)
    identity = AuthIdentity(
        email=email,
        password_hash=generate_password_hash(password, method=hash_method),
        full_name=name,
    )
    try:
        db.session.add(identity)
        db.session.flush()
        account = SystemUser(user_id=identity.id, name=name, email=email, role=role, status=status)
        db.session.add(account)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ValidationError({'email': 'A user with this email already exists.'}) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception('Error adding system user %s', email)
        raise FetchError('Failed to add user.') from exc

    logger.info('Created %s account for %s', role, email)
    return account.to_record(), password


def authenticate(email, password):
    """Return the identity for valid credentials, else None.

    Raises PermissionDenied when every system account of the identity is
    Inactive.
    """
    email = (email or '').strip().lower()
    identity = db.session.query(AuthIdentity).filter_by(email=email).first()
    if identity is None or not check_password_hash(identity.password_hash, password or ''):
        return None
    accounts = identity.system_accounts
    if accounts and all(a.status == AccountStatus.INACTIVE.value for a in accounts):
        raise PermissionDenied('This account is inactive. Please contact an administrator.')
    return identity


def record_login(identity, now=None):
    """Stamp last_login on the identity's active system accounts."""
    now = now or datetime.utcnow()
    try:
        for account in identity.system_accounts:
            if account.status == AccountStatus.ACTIVE.value:
                account.last_login = now
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception('Could not record login for %s', identity.email)


def ensure_bootstrap_admin(email, password, hash_method='pbkdf2:sha256'):
    """Create an Admin account when no system users exist yet."""
    if db.session.query(SystemUser).first() is not None:
        return None

    email = email.strip().lower()
    identity = db.session.query(AuthIdentity).filter_by(email=email).first()
    if identity is None:
        identity = AuthIdentity(
            email=email,
            password_hash=generate_password_hash(password, method=hash_method),
            full_name='Administrator',
        )
        db.session.add(identity)
        db.session.flush()
    account = SystemUser(
        user_id=identity.id,
        name=identity.full_name or 'Administrator',
        email=email,
        role=Role.ADMIN.value,
        status=AccountStatus.ACTIVE.value,
    )
    db.session.add(account)
    db.session.commit()
    logger.info('Created bootstrap admin account %s', email)
    return account
