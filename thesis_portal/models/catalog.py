"""
Thesis Catalog Model
"""

from datetime import datetime

from thesis_portal.extensions import db
from thesis_portal.models.snapshots import CatalogEntry


class ThesisCatalogEntry(db.Model):
    """Bulk-uploaded catalog item; removed rows keep is_deleted=True"""
    __tablename__ = 'thesis_data'

    id = db.Column(db.Integer, primary_key=True)
    barcode = db.Column(db.String(64), unique=True, nullable=False, index=True)
    thesis_title = db.Column(db.String(500), nullable=False)
    authors = db.Column(db.JSON, nullable=False, default=list)
    department = db.Column(db.String(200), nullable=False)
    publication_year = db.Column(db.Integer, nullable=False)
    upload_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    last_modified = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)

    def to_record(self):
        return CatalogEntry(
            id=self.id,
            barcode=self.barcode,
            thesis_title=self.thesis_title,
            department=self.department,
            publication_year=self.publication_year,
            upload_date=self.upload_date,
            last_modified=self.last_modified,
            authors=tuple(self.authors or ()),
            is_deleted=bool(self.is_deleted),
        )

    def __repr__(self):
        return f'<ThesisCatalogEntry {self.barcode}>'
