"""
Records View

One RecordsView exists per open admin records page. It owns the latest
record snapshot, the criteria currently applied to it and a single change
subscription. State is an immutable ViewState that is swapped as a whole,
so a reader never sees a half-applied load.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Tuple

from thesis_portal.errors import FetchError
from thesis_portal.models.snapshots import SubmissionRecord
from thesis_portal.records.engine import Criteria, filter_sort
from thesis_portal.records.store import SUBMISSIONS_TABLE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewState:
    records: Tuple[SubmissionRecord, ...] = ()
    criteria: Criteria = Criteria()
    generation: int = 0
    changes_applied: int = 0
    loaded_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def loaded(self):
        return self.loaded_at is not None

    def with_criteria(self, criteria):
        return replace(self, criteria=criteria)

    def with_records(self, records, generation, changes_applied):
        return replace(
            self,
            records=tuple(records),
            generation=generation,
            changes_applied=changes_applied,
            loaded_at=datetime.utcnow(),
            error=None,
        )

    def with_error(self, message):
        return replace(self, error=message)

    def visible(self):
        return filter_sort(self.records, self.criteria)


class LoadToken:
    """Identifies one load so a late or superseded result can be dropped."""

    __slots__ = ('generation', 'changes_seen', 'started')

    def __init__(self, generation, changes_seen, started):
        self.generation = generation
        self.changes_seen = changes_seen
        self.started = started


class RecordsView:
    """Live view over one table, refreshed from the store on change."""

    def __init__(self, store, table_name=SUBMISSIONS_TABLE, ordering_field='submission_date',
                 direction='desc', load_timeout=None, owner=None, clock=time.monotonic):
        self.view_id = uuid.uuid4().hex
        self.owner = owner
        self.table_name = table_name
        self.ordering_field = ordering_field
        self.direction = direction
        self.load_timeout = load_timeout
        self._store = store
        self._clock = clock
        self._lock = threading.Lock()
        self._state = ViewState()
        self._generation = 0
        self._changes = 0
        self._closed = False
        self.last_access = clock()
        self._subscription = store.subscribe_to_changes(table_name, self._on_change)

    @property
    def state(self):
        return self._state

    @property
    def closed(self):
        return self._closed

    @property
    def changes_received(self):
        return self._changes

    @property
    def needs_reload(self):
        state = self._state
        return not state.loaded or self._changes > state.changes_applied

    def touch(self):
        self.last_access = self._clock()

    def _on_change(self, kind):
        with self._lock:
            self._changes += 1
        logger.debug('View %s saw %s on %s', self.view_id, kind, self.table_name)

    def begin_load(self):
        with self._lock:
            self._generation += 1
            return LoadToken(self._generation, self._changes, self._clock())

    def finish_load(self, token, records):
        """Apply a load result. Returns False when the result was discarded."""
        with self._lock:
            if self._closed or token.generation != self._generation:
                logger.debug('View %s dropped superseded load %d', self.view_id, token.generation)
                return False
            if self.load_timeout is not None and self._clock() - token.started > self.load_timeout:
                logger.warning('View %s load %d exceeded %.1fs', self.view_id, token.generation, self.load_timeout)
                self._state = self._state.with_error('Loading records timed out. Showing the previous results.')
                return False
            self._state = self._state.with_records(records, token.generation, token.changes_seen)
            return True

    def fail_load(self, token, message):
        with self._lock:
            if self._closed or token.generation != self._generation:
                return
            self._state = self._state.with_error(message)

    def refresh(self):
        """Reload from the store, keeping the previous records on failure."""
        token = self.begin_load()
        try:
            records = self._store.load_all(self.table_name, self.ordering_field, self.direction)
        except FetchError as exc:
            self.fail_load(token, exc.message)
            return False
        return self.finish_load(token, records)

    def ensure_fresh(self):
        """Refresh only when never loaded or a change arrived since the last load."""
        if self.needs_reload:
            return self.refresh()
        return True

    def apply(self, criteria):
        with self._lock:
            self._state = self._state.with_criteria(criteria)
            return self._state

    def close(self):
        """Release the change subscription. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return False
            self._closed = True
        self._subscription.unsubscribe()
        logger.debug('Closed records view %s', self.view_id)
        return True


class RecordsViewRegistry:
    """Open records views by id, with idle expiry.

    Each view belongs to an owner token, one per browser session. Lookups
    with the wrong owner behave as if the view did not exist.
    """

    def __init__(self, idle_seconds=1800.0, clock=time.monotonic):
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._views = {}

    def __len__(self):
        return len(self._views)

    def open(self, store, **kwargs):
        self.sweep()
        view = RecordsView(store, clock=self._clock, **kwargs)
        with self._lock:
            self._views[view.view_id] = view
        logger.debug('Opened records view %s', view.view_id)
        return view

    def get(self, view_id, owner=None):
        if not view_id:
            return None
        with self._lock:
            view = self._views.get(view_id)
        if view is None or view.owner != owner:
            return None
        view.touch()
        return view

    def adopt(self, view_id, owner=None):
        """Hand an open view to a newly rendered page under a fresh id.

        The old id stops resolving, so a late close from the page that held
        it cannot reach the view. Returns None when there is nothing to adopt.
        """
        if not view_id:
            return None
        with self._lock:
            view = self._views.get(view_id)
            if view is None or view.owner != owner:
                return None
            del self._views[view_id]
            view.view_id = uuid.uuid4().hex
            self._views[view.view_id] = view
        view.touch()
        logger.debug('Records view %s adopted as %s', view_id, view.view_id)
        return view

    def close(self, view_id, owner=None):
        with self._lock:
            view = self._views.get(view_id)
            if view is None or view.owner != owner:
                return False
            del self._views[view_id]
        return view.close()

    def close_owned(self, owner):
        """Close every view of one owner. Returns how many were closed."""
        with self._lock:
            owned = [v for v in self._views.values() if v.owner == owner]
            for view in owned:
                del self._views[view.view_id]
        for view in owned:
            view.close()
        return len(owned)

    def sweep(self):
        """Close views that have not been used for idle_seconds."""
        cutoff = self._clock() - self.idle_seconds
        with self._lock:
            expired = [v for v in self._views.values() if v.last_access < cutoff]
            for view in expired:
                del self._views[view.view_id]
        for view in expired:
            view.close()
        if expired:
            logger.info('Expired %d idle records view(s)', len(expired))
        return len(expired)

    def close_all(self):
        with self._lock:
            views = list(self._views.values())
            self._views.clear()
        for view in views:
            view.close()
