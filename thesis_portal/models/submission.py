"""
Thesis Submission Model
"""

import uuid
from datetime import datetime

from thesis_portal.extensions import db
from thesis_portal.models.snapshots import SubmissionRecord


def _new_id():
    return str(uuid.uuid4())


class ThesisSubmission(db.Model):
    """One row per public form submission"""
    __tablename__ = 'thesis_submissions'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    full_name = db.Column(db.String(200), nullable=False)
    user_type = db.Column(db.String(20), nullable=False, index=True)
    student_number = db.Column(db.String(50))
    school = db.Column(db.String(200))
    campus = db.Column(db.String(100), nullable=False)
    program = db.Column(db.String(100))
    thesis_title = db.Column(db.String(500), nullable=False)
    submission_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_record(self):
        return SubmissionRecord(
            id=self.id,
            full_name=self.full_name,
            user_type=self.user_type,
            campus=self.campus,
            thesis_title=self.thesis_title,
            submission_date=self.submission_date,
            student_number=self.student_number,
            school=self.school,
            program=self.program,
        )

    def __repr__(self):
        return f'<ThesisSubmission {self.full_name!r} {self.user_type}>'
