"""
Session Hooks

Turns committed ORM changes into change notifications. Changes are collected
per session at flush time and published only after the transaction commits;
a rollback drops them.
"""

import logging

from flask import current_app, has_app_context
from sqlalchemy import event

from thesis_portal.extensions import db
from thesis_portal.models.enums import ChangeKind

logger = logging.getLogger(__name__)

_PENDING_KEY = 'pending_table_changes'


def _table_of(instance):
    return getattr(type(instance), '__tablename__', None)


@event.listens_for(db.session, 'after_flush')
def _collect_changes(session, flush_context):
    pending = session.info.setdefault(_PENDING_KEY, [])
    for instance in session.new:
        pending.append((_table_of(instance), ChangeKind.INSERT.value))
    for instance in session.dirty:
        if session.is_modified(instance, include_collections=False):
            pending.append((_table_of(instance), ChangeKind.UPDATE.value))
    for instance in session.deleted:
        pending.append((_table_of(instance), ChangeKind.DELETE.value))


@event.listens_for(db.session, 'after_commit')
def _publish_changes(session):
    pending = session.info.pop(_PENDING_KEY, [])
    if not pending or not has_app_context():
        return
    notifier = current_app.extensions.get('change_notifier')
    if notifier is None:
        return
    # One event per (table, kind) per commit is enough to trigger a re-read
    for table_name, kind in dict.fromkeys(pending):
        if table_name is None:
            continue
        delivered = notifier.publish(table_name, kind)
        logger.debug('Published %s on %s to %d subscriber(s)', kind, table_name, delivered)


@event.listens_for(db.session, 'after_rollback')
def _discard_changes(session):
    session.info.pop(_PENDING_KEY, None)
