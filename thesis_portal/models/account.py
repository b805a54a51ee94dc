"""
Account Models

AuthIdentity holds sign-in credentials; SystemUser carries the staff role
and status shown on the System Users tab.
"""

import uuid
from datetime import datetime

from flask_login import UserMixin

from thesis_portal.extensions import db
from thesis_portal.models.enums import AccountStatus, Role
from thesis_portal.models.snapshots import SystemUserAccount


def _new_id():
    return str(uuid.uuid4())


class AuthIdentity(UserMixin, db.Model):
    """Sign-in identity used by Flask-Login"""
    __tablename__ = 'auth_identities'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(200))
    # Legacy profile role, consulted only when no active system account exists
    profile_role = db.Column(db.String(20))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<AuthIdentity {self.email}>'


class SystemUser(db.Model):
    """Staff account with a role and status"""
    __tablename__ = 'system_users'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('auth_identities.id'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=Role.READER.value)
    status = db.Column(db.String(20), nullable=False, default=AccountStatus.ACTIVE.value)
    last_login = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    identity = db.relationship('AuthIdentity', backref=db.backref('system_accounts', lazy=True))

    def to_record(self):
        return SystemUserAccount(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            email=self.email,
            role=self.role,
            status=self.status,
            created_at=self.created_at,
            last_login=self.last_login,
        )

    def __repr__(self):
        return f'<SystemUser {self.email} {self.role}>'
