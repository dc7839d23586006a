"""Bounded undo/redo history with write-through persistence."""

import json
import logging
from typing import Any, Callable, List, Optional

logger = logging.getLogger('dealerdesk.tracker.history')


class HistoryState:
    """Holds a present value plus bounded past/future stacks of whole snapshots.

    Every change is written to `storage` under `storage_key`. A missing or
    unreadable stored value falls back to `initial`; that failure is logged
    and never raised.
    """

    def __init__(self, initial: Any, limit: int = 7, storage=None,
                 storage_key: Optional[str] = None,
                 serialize: Optional[Callable[[Any], str]] = None,
                 deserialize: Optional[Callable[[str], Any]] = None):
        if limit < 1:
            raise ValueError('limit must be at least 1')
        self.limit = limit
        self._storage = storage
        self._storage_key = storage_key
        self._serialize = serialize or json.dumps
        self._deserialize = deserialize or json.loads
        self._initial = initial
        self.past: List[Any] = []
        self.future: List[Any] = []
        self.present = self._load_initial()

    def _load_initial(self):
        if self._storage is None or not self._storage_key:
            return self._initial
        try:
            stored = self._storage.get_item(self._storage_key)
        except Exception:
            logger.warning(f'Could not read stored state for {self._storage_key}, using defaults', exc_info=True)
            return self._initial
        if not stored:
            return self._initial
        try:
            return self._deserialize(stored)
        except Exception as e:
            logger.warning(f'Failed to parse stored state for {self._storage_key}, resetting: {e}')
            return self._initial

    def _persist(self, value) -> None:
        if self._storage is None or not self._storage_key:
            return
        try:
            self._storage.set_item(self._storage_key, self._serialize(value))
        except Exception:
            logger.warning(f'Unable to persist state for {self._storage_key}', exc_info=True)

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)

    def set_state(self, value):
        """Replace the present value. Callables are applied to the present first."""
        resolved = value(self.present) if callable(value) else value
        self.past = (self.past + [self.present])[-self.limit:]
        self.present = resolved
        self.future = []
        self._persist(resolved)
        return resolved

    def undo(self) -> bool:
        if not self.past:
            logger.debug('Nothing to undo')
            return False
        previous = self.past[-1]
        self.past = self.past[:-1]
        self.future = ([self.present] + self.future)[:self.limit]
        self.present = previous
        self._persist(previous)
        return True

    def redo(self) -> bool:
        if not self.future:
            logger.debug('Nothing to redo')
            return False
        nxt = self.future[0]
        self.past = (self.past + [self.present])[-self.limit:]
        self.future = self.future[1:]
        self.present = nxt
        self._persist(nxt)
        return True
