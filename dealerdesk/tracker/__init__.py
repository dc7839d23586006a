"""DealerDesk progress tracker.

Drag-and-drop task board: four project-size categories of task columns with
bounded undo/redo, a three-column multi-select panel and per-column PDF export.
Board snapshots persist per user in tracker_snapshots.
"""
from flask import Blueprint

tracker_bp = Blueprint('tracker', __name__)

from . import routes  # noqa: E402, F401
