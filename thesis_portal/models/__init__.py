"""
Models Package

Exports all models for easy importing.
"""

from thesis_portal.models.account import AuthIdentity, SystemUser
from thesis_portal.models.catalog import ThesisCatalogEntry
from thesis_portal.models.enums import AccountStatus, ChangeKind, Role, SubmitterCategory
from thesis_portal.models.snapshots import CatalogEntry, SubmissionRecord, SystemUserAccount
from thesis_portal.models.submission import ThesisSubmission

# Table name -> model, for the store client
TABLES = {
    ThesisSubmission.__tablename__: ThesisSubmission,
    ThesisCatalogEntry.__tablename__: ThesisCatalogEntry,
    SystemUser.__tablename__: SystemUser,
}

__all__ = [
    'AuthIdentity',
    'SystemUser',
    'ThesisCatalogEntry',
    'ThesisSubmission',
    'AccountStatus',
    'ChangeKind',
    'Role',
    'SubmitterCategory',
    'CatalogEntry',
    'SubmissionRecord',
    'SystemUserAccount',
    'TABLES',
]
