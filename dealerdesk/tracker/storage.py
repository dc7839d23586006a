"""Snapshot storage backends for the progress tracker.

Both backends expose get_item(key) / set_item(key, raw) over raw JSON text.
"""

import logging
import threading

from core.base_repository import BaseRepository

logger = logging.getLogger('dealerdesk.tracker.storage')

STORAGE_KEY = 'progress-tracker-board'


class MemoryStorage:
    """Process-local storage, used for tests and anonymous previews."""

    def __init__(self, initial=None):
        self._items = dict(initial or {})
        self._lock = threading.Lock()

    def get_item(self, key):
        with self._lock:
            return self._items.get(key)

    def set_item(self, key, raw):
        with self._lock:
            self._items[key] = raw

    def remove_item(self, key):
        with self._lock:
            self._items.pop(key, None)


class SnapshotRepository(BaseRepository):
    """Board snapshots in tracker_snapshots, one row per (user_id, storage_key)."""

    def get_snapshot(self, user_id, storage_key):
        row = self.query_one('''
            SELECT payload FROM tracker_snapshots
            WHERE user_id = %s AND storage_key = %s
        ''', (user_id, storage_key))
        return row['payload'] if row else None

    def save_snapshot(self, user_id, storage_key, payload):
        return self.execute('''
            INSERT INTO tracker_snapshots (user_id, storage_key, payload, updated_at)
            VALUES (%s, %s, %s, CURRENT_TIMESTAMP)
            ON CONFLICT (user_id, storage_key)
            DO UPDATE SET payload = EXCLUDED.payload, updated_at = CURRENT_TIMESTAMP
        ''', (user_id, storage_key, payload))

    def delete_snapshot(self, user_id, storage_key):
        return self.execute(
            'DELETE FROM tracker_snapshots WHERE user_id = %s AND storage_key = %s',
            (user_id, storage_key)
        ) > 0

    def for_user(self, user_id):
        return UserSnapshotStorage(self, user_id)


class UserSnapshotStorage:
    """SnapshotRepository bound to one user, with the get_item/set_item interface."""

    def __init__(self, repo, user_id):
        self._repo = repo
        self.user_id = user_id

    def get_item(self, key):
        return self._repo.get_snapshot(self.user_id, key)

    def set_item(self, key, raw):
        self._repo.save_snapshot(self.user_id, key, raw)

    def remove_item(self, key):
        self._repo.delete_snapshot(self.user_id, key)
