"""
In-process change notification.

Writers call ``publish(collection)`` after a successful commit; every live
subscriber of that collection gets its callback invoked with the collection
name. A subscription is released with ``close()`` or by leaving its ``with``
block, so a view that stops displaying data also stops listening.
"""
import logging
import threading

logger = logging.getLogger(__name__)

PROCESSES = 'processes'
USERS = 'users'


class Subscription:
    def __init__(self, feed, collection, callback):
        self._feed = feed
        self.collection = collection
        self.callback = callback
        self.active = True

    def close(self):
        if self.active:
            self.active = False
            self._feed._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers = {}

    def subscribe(self, collection, callback):
        sub = Subscription(self, collection, callback)
        with self._lock:
            self._subscribers.setdefault(collection, []).append(sub)
        logger.debug("Subscribed to %s (%d listeners)", collection, self.listener_count(collection))
        return sub

    def publish(self, collection):
        with self._lock:
            listeners = list(self._subscribers.get(collection, []))
        for sub in listeners:
            if not sub.active:
                continue
            try:
                sub.callback(collection)
            except Exception:
                # One broken listener must not fail the write that triggered it
                logger.exception("Change listener for %s failed", collection)
        return len(listeners)

    def listener_count(self, collection):
        with self._lock:
            return len(self._subscribers.get(collection, []))

    def _remove(self, sub):
        with self._lock:
            listeners = self._subscribers.get(sub.collection, [])
            if sub in listeners:
                listeners.remove(sub)
        logger.debug("Unsubscribed from %s", sub.collection)
