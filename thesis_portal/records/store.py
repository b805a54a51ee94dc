"""
Record Store Client

Thin wrapper over the database session and the change notifier. Every read
returns snapshots, every failure is raised as a FetchError, and deletes are
checked against the acting account's role before anything is touched.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from thesis_portal.errors import FetchError, PermissionDenied
from thesis_portal.models import TABLES, Role, ThesisSubmission

logger = logging.getLogger(__name__)

SUBMISSIONS_TABLE = ThesisSubmission.__tablename__


class RecordStoreClient:
    """Read, insert, delete and subscribe against the portal tables."""

    def __init__(self, session, notifier):
        self._session = session
        self._notifier = notifier

    def _model_for(self, table_name):
        model = TABLES.get(table_name)
        if model is None:
            raise FetchError(f'Unknown table: {table_name}')
        return model

    def load_all(self, table_name, ordering_field, direction='desc'):
        """Return every visible row of the table as snapshots, in order.

        Rows carrying a soft-delete flag are left out.
        """
        model = self._model_for(table_name)
        column = getattr(model, ordering_field, None)
        if column is None or not hasattr(column, 'desc'):
            raise FetchError(f'Unknown ordering field {ordering_field!r} for {table_name}')
        order = column.asc() if direction == 'asc' else column.desc()

        try:
            query = self._session.query(model)
            if hasattr(model, 'is_deleted'):
                query = query.filter(model.is_deleted.is_(False))
            rows = query.order_by(order).all()
            records = [row.to_record() for row in rows]
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception('Error loading %s', table_name)
            raise FetchError(f'Failed to fetch {table_name} records. Please try again.') from exc

        logger.debug('Loaded %d row(s) from %s', len(records), table_name)
        return records

    def insert(self, table_name, values):
        """Insert one row and return its snapshot."""
        model = self._model_for(table_name)
        row = model(**values)
        try:
            self._session.add(row)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception('Error inserting into %s', table_name)
            raise FetchError(f'Could not save to {table_name}. Please try again.') from exc
        return row.to_record()

    def delete(self, record_id, actor_role, table_name=SUBMISSIONS_TABLE):
        """Hard-delete one row. Only Admin actors may delete."""
        if actor_role != Role.ADMIN.value:
            logger.info('Delete of %s/%s refused for role %s', table_name, record_id, actor_role)
            raise PermissionDenied("You don't have permission to delete records.",
                                   required_role=Role.ADMIN.value)

        model = self._model_for(table_name)
        try:
            row = self._session.get(model, record_id)
            if row is None:
                raise FetchError('Record not found. It may already have been deleted.')
            self._session.delete(row)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception('Error deleting %s/%s', table_name, record_id)
            raise FetchError('Failed to delete record.') from exc
        logger.info('Deleted %s/%s', table_name, record_id)

    def subscribe_to_changes(self, table_name, on_change):
        self._model_for(table_name)
        return self._notifier.subscribe(table_name, on_change)
