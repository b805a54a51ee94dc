"""
Change Notifier

Table-scoped publish/subscribe for content-free change events. Subscribers
get only the kind of change ('INSERT', 'UPDATE', 'DELETE') and are expected
to re-read the table themselves.
"""

import itertools
import logging
import threading

logger = logging.getLogger(__name__)


class Subscription:
    """Handle returned by ChangeNotifier.subscribe. Release with unsubscribe()."""

    def __init__(self, notifier, table_name, callback, sub_id):
        self._notifier = notifier
        self.table_name = table_name
        self.callback = callback
        self.id = sub_id
        self._released = False
        self._lock = threading.Lock()

    @property
    def active(self):
        return not self._released

    def unsubscribe(self):
        """Release the subscription. Returns False if it was already released."""
        with self._lock:
            if self._released:
                return False
            self._released = True
        self._notifier._remove(self)
        logger.debug('Released subscription %s on %s', self.id, self.table_name)
        return True


class ChangeNotifier:
    """Fan out table change events to subscribed callbacks."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers = {}
        self._ids = itertools.count(1)

    def subscribe(self, table_name, callback):
        with self._lock:
            sub = Subscription(self, table_name, callback, next(self._ids))
            self._subscribers.setdefault(table_name, {})[sub.id] = sub
        logger.debug('Subscribed %s to %s', sub.id, table_name)
        return sub

    def _remove(self, sub):
        with self._lock:
            table_subs = self._subscribers.get(sub.table_name, {})
            table_subs.pop(sub.id, None)
            if not table_subs:
                self._subscribers.pop(sub.table_name, None)

    def subscriber_count(self, table_name=None):
        with self._lock:
            if table_name is not None:
                return len(self._subscribers.get(table_name, {}))
            return sum(len(subs) for subs in self._subscribers.values())

    def publish(self, table_name, kind):
        """Deliver one change event to every current subscriber of the table.

        Callbacks run outside the lock; a failing callback is logged and does
        not stop delivery to the others.
        """
        with self._lock:
            targets = list(self._subscribers.get(table_name, {}).values())
        for sub in targets:
            try:
                sub.callback(kind)
            except Exception:
                logger.exception('Change callback %s failed for %s', sub.id, table_name)
        return len(targets)
