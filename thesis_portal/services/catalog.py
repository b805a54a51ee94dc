"""
Thesis Catalog Services

Search, CSV bulk upload and soft delete for the thesis_data table.
"""

import csv
import io
import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from thesis_portal.errors import FetchError, PermissionDenied, ValidationError
from thesis_portal.extensions import db
from thesis_portal.models import Role, ThesisCatalogEntry

logger = logging.getLogger(__name__)

CSV_COLUMNS = ('barcode', 'thesis_title', 'authors', 'department', 'publication_year')


def _require_admin(actor_role, action):
    if actor_role != Role.ADMIN:
        raise PermissionDenied(f"You don't have permission to {action}.", required_role=Role.ADMIN.value)


def search_catalog(entries, term):
    """Entries whose title, any author, department or barcode contains term."""
    needle = (term or '').strip().lower()
    if not needle:
        return list(entries)
    return [
        e for e in entries
        if needle in e.thesis_title.lower()
        or any(needle in a.lower() for a in e.authors)
        or needle in e.department.lower()
        or needle in e.barcode.lower()
    ]


def find_titles(term, limit=10):
    """Catalog titles containing term, for the submission form lookup."""
    term = (term or '').strip()
    if len(term) < 2:
        return []
    try:
        rows = db.session.query(ThesisCatalogEntry.thesis_title).filter(
            ThesisCatalogEntry.is_deleted.is_(False),
            ThesisCatalogEntry.thesis_title.icontains(term, autoescape=True),
        ).order_by(ThesisCatalogEntry.thesis_title).limit(limit).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception('Error searching catalog titles')
        raise FetchError('Failed to search thesis titles.') from exc
    return [title for (title,) in rows]


def parse_catalog_csv(text):
    """Parse uploaded CSV text into row values.

    Authors are separated by ';'. All row problems are collected and raised
    together as one ValidationError.
    """
    reader = csv.DictReader(io.StringIO(text))
    header = [h.strip() for h in (reader.fieldnames or [])]
    missing = [c for c in CSV_COLUMNS if c not in header]
    if missing:
        raise ValidationError({'file': f'Missing column(s): {", ".join(missing)}'})

    rows, errors, seen = [], {}, set()
    for line_no, raw in enumerate(reader, start=2):
        row = {(k or '').strip(): (v or '').strip() for k, v in raw.items()}
        barcode = row.get('barcode', '')
        title = row.get('thesis_title', '')
        department = row.get('department', '')
        authors = [a.strip() for a in row.get('authors', '').split(';') if a.strip()]

        if not barcode or not title or not department or not authors:
            errors[f'line {line_no}'] = f'Line {line_no}: barcode, title, authors and department are required.'
            continue
        try:
            year = int(row.get('publication_year', ''))
        except ValueError:
            errors[f'line {line_no}'] = f'Line {line_no}: publication year must be a number.'
            continue
        if barcode in seen:
            errors[f'line {line_no}'] = f'Line {line_no}: duplicate barcode {barcode}.'
            continue
        seen.add(barcode)
        rows.append({
            'barcode': barcode,
            'thesis_title': title,
            'authors': authors,
            'department': department,
            'publication_year': year,
        })

    if errors:
        raise ValidationError(errors)
    if not rows:
        raise ValidationError({'file': 'The file contains no thesis records.'})
    return rows


def ingest_csv(text, actor_role):
    """Insert every row of an uploaded CSV file. Returns the number inserted."""
    _require_admin(actor_role, 'upload thesis data')
    rows = parse_catalog_csv(text)

    barcodes = [r['barcode'] for r in rows]
    existing = {
        b for (b,) in db.session.query(ThesisCatalogEntry.barcode)
        .filter(ThesisCatalogEntry.barcode.in_(barcodes)).all()
    }
    if existing:
        raise ValidationError({'file': f'Barcode(s) already in the catalog: {", ".join(sorted(existing))}'})

    now = datetime.utcnow()
    try:
        db.session.add_all(
            ThesisCatalogEntry(upload_date=now, last_modified=now, **r) for r in rows
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception('Error uploading thesis data')
        raise FetchError('Failed to upload thesis records.') from exc

    logger.info('Uploaded %d thesis record(s)', len(rows))
    return len(rows)


def soft_delete_entry(entry_id, actor_role):
    """Flag a catalog entry as deleted; it stays in the table."""
    _require_admin(actor_role, 'delete thesis data')
    try:
        entry = db.session.get(ThesisCatalogEntry, entry_id)
        if entry is None or entry.is_deleted:
            raise FetchError('Thesis record not found.')
        entry.is_deleted = True
        entry.last_modified = datetime.utcnow()
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception('Error deleting thesis record %s', entry_id)
        raise FetchError('Failed to delete thesis record.') from exc
    return entry.to_record()
