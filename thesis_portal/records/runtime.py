"""
Per-application access to the notifier, store client and open views.
"""

from flask import current_app

from thesis_portal.extensions import db
from thesis_portal.records.store import RecordStoreClient


def get_notifier():
    return current_app.extensions['change_notifier']


def get_views():
    return current_app.extensions['records_views']


def get_store():
    return RecordStoreClient(db.session, get_notifier())
