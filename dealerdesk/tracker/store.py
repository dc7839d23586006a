"""BoardStore - the single source of truth for one progress tracker board.

The store owns its history and its persistence backend; callers inject the
backend (MemoryStorage, or a SnapshotRepository bound to a user). All
mutations go through one re-entrant lock, so a drag and a bulk move on the
same board never interleave.
"""

import os
import re
import json
import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, Tuple

from .models import (
    BoardState, TaskColumn, TRASH_LIMIT, MAX_LINKS, DESCRIPTION_LIMIT,
    CRITICALITY_MIN, CRITICALITY_MAX, HIGHLIGHT_COLORS, create_empty_column, utc_now,
)
from .history import HistoryState
from .storage import STORAGE_KEY
from .dnd import apply_drag
from .selection import ColumnIdentifier, move_selected_to_line

logger = logging.getLogger('dealerdesk.tracker.store')

HISTORY_LIMIT = int(os.environ.get('TRACKER_HISTORY_LIMIT', '7'))

_HEX_COLOR_RE = re.compile(r'^#[0-9a-fA-F]{6}$')


def serialize_board(state: BoardState) -> str:
    return json.dumps(state.to_dict())


def deserialize_board(raw: str) -> BoardState:
    return BoardState.from_dict(json.loads(raw))


def validate_column(column: TaskColumn) -> None:
    """Raise ValueError if `column` breaks a board invariant."""
    if not CRITICALITY_MIN <= column.criticality <= CRITICALITY_MAX:
        raise ValueError(f'criticality must be between {CRITICALITY_MIN} and {CRITICALITY_MAX}')
    if len(column.links) > MAX_LINKS:
        raise ValueError(f'A column can hold at most {MAX_LINKS} links')
    if len(column.description) > DESCRIPTION_LIMIT:
        raise ValueError(f'description is limited to {DESCRIPTION_LIMIT} characters')
    if not _HEX_COLOR_RE.match(column.highlight_color or ''):
        raise ValueError(f'Invalid highlight color: {column.highlight_color}')


class BoardStore:

    def __init__(self, storage=None, storage_key: str = STORAGE_KEY, limit: int = HISTORY_LIMIT):
        self._lock = threading.RLock()
        self._history = HistoryState(
            BoardState.empty(),
            limit=limit,
            storage=storage,
            storage_key=storage_key,
            serialize=serialize_board,
            deserialize=deserialize_board,
        )

    # -------------------- history --------------------

    @property
    def state(self) -> BoardState:
        return self._history.present

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def set_state(self, updater) -> BoardState:
        """Apply a pure transform (or a replacement BoardState) to the whole board."""
        with self._lock:
            return self._history.set_state(updater)

    def _commit(self, transform: Callable[[BoardState], BoardState]) -> bool:
        # Only real changes enter the undo history
        with self._lock:
            current = self._history.present
            nxt = transform(current)
            if nxt is current or nxt == current:
                return False
            self._history.set_state(nxt)
            return True

    def undo(self) -> bool:
        with self._lock:
            done = self._history.undo()
        if not done:
            logger.info('Nothing to undo')
        return done

    def redo(self) -> bool:
        with self._lock:
            done = self._history.redo()
        if not done:
            logger.info('Nothing to redo')
        return done

    # -------------------- lookups --------------------

    def find_column(self, column_id: str) -> Tuple[str, TaskColumn]:
        """Return (category_id, column). Raises KeyError if the column is not on the board."""
        category = self.state.category_of(column_id)
        if category is None:
            raise KeyError(f'Column {column_id} not found')
        return category.id, category.columns[category.index_of(column_id)]

    # -------------------- column mutations --------------------

    def add_column(self, category_id: str) -> TaskColumn:
        with self._lock:
            category = self.state.category(category_id)
            if category is None:
                raise KeyError(f'Category {category_id} not found')
            column = create_empty_column()
            self.set_state(lambda s: s.replace_category(
                replace(category, columns=category.columns + (column,))))
        logger.info(f'Column {column.id} added to {category_id}')
        return column

    def update_column(self, column_id: str, updater: Callable[[TaskColumn], TaskColumn]) -> TaskColumn:
        with self._lock:
            category_id, column = self.find_column(column_id)
            updated = updater(column)
            validate_column(updated)
            category = self.state.category(category_id)
            columns = tuple(updated if c.id == column_id else c for c in category.columns)
            self.set_state(lambda s: s.replace_category(replace(category, columns=columns)))
            return updated

    def save_column(self, draft: TaskColumn) -> TaskColumn:
        """Commit an editor draft.

        The lock flag and messages appended elsewhere while the draft was open
        are kept: history only grows.
        """
        def _merge(current: TaskColumn) -> TaskColumn:
            known = {m.id for m in current.history}
            appended = tuple(m for m in draft.history if m.id not in known)
            return replace(
                draft,
                locked=current.locked,
                history=current.history + appended,
                trashed_at=None,
                last_updated=utc_now(),
            )
        saved = self.update_column(draft.id, _merge)
        logger.info(f'Column {draft.id} saved')
        return saved

    def toggle_lock(self, column_id: str) -> TaskColumn:
        return self.update_column(column_id, lambda c: replace(c, locked=not c.locked))

    def append_message(self, column_id: str, content: str) -> bool:
        if not content or not content.strip():
            return False
        self.update_column(column_id, lambda c: c.with_message(content))
        return True

    def highlight(self, column_ids: Iterable[str], color: str) -> int:
        """Set highlight_color on every listed column in a single snapshot."""
        if color not in HIGHLIGHT_COLORS:
            raise ValueError(f'Invalid highlight color: {color}')
        ids = set(column_ids)

        def _transform(state: BoardState) -> BoardState:
            return replace(state, categories=tuple(
                replace(cat, columns=tuple(
                    replace(c, highlight_color=color) if c.id in ids else c for c in cat.columns))
                for cat in state.categories))

        with self._lock:
            present = ids & set(self.state.column_ids())
            self._commit(_transform)
        return len(present)

    def remove_column(self, column_id: str) -> bool:
        """Soft delete: move the column to the front of the trash."""
        with self._lock:
            category = self.state.category_of(column_id)
            if category is None:
                return False
            column = category.columns[category.index_of(column_id)]
            trashed = replace(column, trashed_at=utc_now())

            def _transform(state: BoardState) -> BoardState:
                cat = state.category(category.id)
                state = state.replace_category(
                    replace(cat, columns=tuple(c for c in cat.columns if c.id != column_id)))
                return replace(state, trash=((trashed,) + state.trash)[:TRASH_LIMIT])

            self.set_state(_transform)
        logger.info(f'Column {column_id} moved to trash')
        return True

    # -------------------- ordering --------------------

    def handle_drag_end(self, active_id: str, over_id) -> bool:
        changed = self._commit(lambda s: apply_drag(s, active_id, over_id))
        if changed:
            logger.debug(f'Drag committed: {active_id} -> {over_id}')
        return changed

    def move_to_line(self, selection: Iterable[ColumnIdentifier], line: int) -> bool:
        selection = list(selection)
        return self._commit(lambda s: move_selected_to_line(s, selection, line))
