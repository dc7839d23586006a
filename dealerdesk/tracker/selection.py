"""Multi-select advanced panel: up to three columns acted on at once."""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from .models import BoardState, TaskColumn

logger = logging.getLogger('dealerdesk.tracker.selection')

MAX_SELECTION = 3


@dataclass(frozen=True)
class ColumnIdentifier:
    column_id: str
    category_id: str

    @classmethod
    def from_dict(cls, data):
        return cls(column_id=data['columnId'], category_id=data['categoryId'])

    def to_dict(self):
        return {'columnId': self.column_id, 'categoryId': self.category_id}


class SelectionSet:
    """Ordered selection capped at MAX_SELECTION, plus the active chat target."""

    def __init__(self, limit: int = MAX_SELECTION):
        self.limit = limit
        self._items: List[ColumnIdentifier] = []
        self.advanced_mode = False
        self.chat_target: Optional[str] = None

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    def __contains__(self, column_id) -> bool:
        return any(item.column_id == column_id for item in self._items)

    @property
    def ids(self) -> List[str]:
        return [item.column_id for item in self._items]

    def toggle(self, identifier: ColumnIdentifier) -> bool:
        """Add or remove `identifier`. A 4th addition is ignored.

        Returns True when the selection changed. The chat target always names
        a selected column, or is None once the selection is empty.
        """
        self.advanced_mode = True
        if identifier.column_id in self:
            self._items = [i for i in self._items if i.column_id != identifier.column_id]
            if self.chat_target not in self:
                self.chat_target = self._items[-1].column_id if self._items else None
            return True
        if len(self._items) >= self.limit:
            return False
        self._items.append(identifier)
        self.chat_target = identifier.column_id
        return True

    def clear(self) -> None:
        self._items = []

    def close(self) -> None:
        self._items = []
        self.chat_target = None
        self.advanced_mode = False


def move_selected_to_line(state: BoardState, selection: Iterable[ColumnIdentifier], line: int) -> BoardState:
    """Reinsert selected columns as one block at 1-based `line` of their category.

    Relative order of the moved columns follows their current order in the
    category. Categories holding no selected column are left as they are.
    """
    selection = list(selection)
    if not selection:
        return state

    categories = []
    for category in state.categories:
        ids = {item.column_id for item in selection if item.category_id == category.id}
        if not ids:
            categories.append(category)
            continue
        moved = [c for c in category.columns if c.id in ids]
        remaining = [c for c in category.columns if c.id not in ids]
        insert_at = max(0, min(line - 1, len(remaining)))
        columns = remaining[:insert_at] + moved + remaining[insert_at:]
        categories.append(replace(category, columns=tuple(columns)))

    return replace(state, categories=tuple(categories))


class AdvancedPanel:
    """Bulk actions over a SelectionSet, committed through a BoardStore."""

    def __init__(self, store, selection: Optional[SelectionSet] = None):
        self.store = store
        self.selection = selection if selection is not None else SelectionSet()

    def select(self, column_id: str) -> bool:
        category_id, _ = self.store.find_column(column_id)
        return self.selection.toggle(ColumnIdentifier(column_id, category_id))

    def selected_columns(self) -> List[TaskColumn]:
        state = self.store.state
        columns = []
        for item in self.selection:
            category = state.category(item.category_id)
            if category is None or item.column_id not in category:
                continue
            columns.append(category.columns[category.index_of(item.column_id)])
        return columns

    def set_chat_target(self, column_id: str) -> None:
        if column_id not in self.selection:
            raise ValueError('Chat target must be one of the selected columns')
        self.selection.chat_target = column_id

    def highlight(self, color: str) -> None:
        if not len(self.selection):
            return
        self.store.highlight(self.selection.ids, color)

    def move_to_line(self, line: int) -> bool:
        if not len(self.selection):
            return False
        return self.store.move_to_line(list(self.selection), line)

    def delete(self) -> int:
        removed = 0
        for column_id in self.selection.ids:
            if self.store.remove_column(column_id):
                removed += 1
        self.selection.close()
        return removed

    def send_message(self, content: str) -> bool:
        """Append `content` to the active chat target only."""
        target = self.selection.chat_target
        if not target or not content or not content.strip():
            return False
        return self.store.append_message(target, content)
