"""Drag-and-drop reordering for the progress tracker.

apply_drag() is pure: it takes a BoardState and returns either a new one or
the same object when the drop resolves to nothing.
"""

import logging
from dataclasses import replace
from typing import Optional

from .models import BoardState, TaskColumn

logger = logging.getLogger('dealerdesk.tracker.dnd')


def is_draggable(column: TaskColumn) -> bool:
    """Sensor activation guard: locked columns cannot be picked up."""
    return not column.locked


def handle_drag_start(selection) -> None:
    """A drag always starts from a clean multi-select."""
    if selection is not None:
        selection.clear()


def apply_drag(state: BoardState, active_id: str, over_id: Optional[str]) -> BoardState:
    """Move `active_id` onto `over_id`, which is a column or a category id.

    Dropping onto a column inserts before it; dropping onto a category
    container appends to that category.
    """
    if over_id is None or active_id == over_id:
        return state

    source = state.category_of(active_id)
    destination = state.category_of(over_id) or state.category(over_id)
    if source is None or destination is None:
        logger.debug(f'Drag {active_id} -> {over_id} did not resolve, ignored')
        return state

    column = source.columns[source.index_of(active_id)]
    if not is_draggable(column):
        logger.debug(f'Column {active_id} is locked, drag ignored')
        return state

    categories = []
    for category in state.categories:
        columns = [c for c in category.columns if c.id != active_id]
        if category.id == destination.id:
            over_index = next((i for i, c in enumerate(columns) if c.id == over_id), -1)
            insert_at = len(columns) if over_index == -1 else over_index
            columns.insert(insert_at, column)
        if category.id in (source.id, destination.id):
            category = replace(category, columns=tuple(columns))
        categories.append(category)

    return replace(state, categories=tuple(categories))
