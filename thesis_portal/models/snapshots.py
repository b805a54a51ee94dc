"""
Read-only copies of stored rows.

Views and the records engine work on these instead of live ORM objects so a
snapshot can outlive the database session that produced it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class SubmissionRecord:
    id: str
    full_name: str
    user_type: str
    campus: str
    thesis_title: str
    submission_date: datetime
    student_number: Optional[str] = None
    school: Optional[str] = None
    program: Optional[str] = None

    @property
    def id_or_institution(self) -> str:
        return self.student_number or self.school or ''


@dataclass(frozen=True)
class CatalogEntry:
    id: int
    barcode: str
    thesis_title: str
    department: str
    publication_year: int
    upload_date: datetime
    last_modified: datetime
    authors: Tuple[str, ...] = field(default_factory=tuple)
    is_deleted: bool = False


@dataclass(frozen=True)
class SystemUserAccount:
    id: str
    user_id: str
    name: str
    email: str
    role: str
    status: str
    created_at: datetime
    last_login: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == 'Admin'
