"""Progress tracker API routes - board, columns, drag, multi-select, undo/redo."""

import logging
import threading
from flask import jsonify, request, send_file
from flask_login import login_required, current_user

from . import tracker_bp
from .store import BoardStore
from .storage import SnapshotRepository
from .editor import ColumnEditor
from .export import export_pdf, export_filename
from .selection import ColumnIdentifier, SelectionSet, AdvancedPanel
from core.utils.api_helpers import (
    permission_required, get_json_or_error, error_response, safe_error_response,
)

logger = logging.getLogger('dealerdesk.tracker.routes')

tracker_required = permission_required('can_access_tracker', 'Tracker access denied')

MAX_IMAGE_BYTES = 5 * 1024 * 1024


class BoardRegistry:
    """One BoardStore per user, per worker process.

    Undo/redo history lives here in memory; the board itself is written
    through to the storage backend on every change.
    """

    def __init__(self, storage_factory=None):
        self._boards = {}
        self._lock = threading.Lock()
        self._storage_factory = storage_factory or SnapshotRepository().for_user

    def get(self, user_id) -> BoardStore:
        with self._lock:
            store = self._boards.get(user_id)
            if store is None:
                store = BoardStore(storage=self._storage_factory(user_id))
                self._boards[user_id] = store
                logger.debug(f'Board loaded for user {user_id}')
            return store

    def discard(self, user_id) -> None:
        with self._lock:
            self._boards.pop(user_id, None)


_registry = BoardRegistry()


def _store() -> BoardStore:
    return _registry.get(current_user.id)


def _board_payload(store, **extra):
    payload = {
        'success': True,
        'board': store.state.to_dict(),
        'canUndo': store.can_undo,
        'canRedo': store.can_redo,
    }
    payload.update(extra)
    return jsonify(payload)


def _selection_from(data) -> SelectionSet:
    """Build a SelectionSet from [{columnId, categoryId}, ...].

    Repeated columnIds count once; extra items past the cap are dropped.
    """
    items = data.get('selection')
    if not isinstance(items, list) or not items:
        raise ValueError('selection must be a non-empty list')
    selection = SelectionSet()
    for item in items:
        if not isinstance(item, dict) or not item.get('columnId') or not item.get('categoryId'):
            raise ValueError('Each selection item needs columnId and categoryId')
        if item['columnId'] in selection:
            continue
        selection.toggle(ColumnIdentifier.from_dict(item))
    return selection


# ════════════════════════════════════════════════════════════════
# Board
# ════════════════════════════════════════════════════════════════

@tracker_bp.route('/api/tracker/board', methods=['GET'])
@login_required
@tracker_required
def api_board():
    return _board_payload(_store())


@tracker_bp.route('/api/tracker/undo', methods=['POST'])
@login_required
@tracker_required
def api_undo():
    store = _store()
    return _board_payload(store, changed=store.undo())


@tracker_bp.route('/api/tracker/redo', methods=['POST'])
@login_required
@tracker_required
def api_redo():
    store = _store()
    return _board_payload(store, changed=store.redo())


# ════════════════════════════════════════════════════════════════
# Columns
# ════════════════════════════════════════════════════════════════

@tracker_bp.route('/api/tracker/categories/<category_id>/columns', methods=['POST'])
@login_required
@tracker_required
def api_add_column(category_id):
    store = _store()
    try:
        column = store.add_column(category_id)
    except KeyError:
        return error_response('Category not found', 404)
    return _board_payload(store, column=column.to_dict()), 201


@tracker_bp.route('/api/tracker/columns/<column_id>', methods=['PUT'])
@login_required
@tracker_required
def api_save_column(column_id):
    """Editor save. Body: any of title, description, criticality, duration,
    highlightColor, reminder{type,time,hideAfterDismiss}, links[], newMessages[].
    """
    data, error = get_json_or_error()
    if error:
        return error

    store = _store()
    try:
        _, column = store.find_column(column_id)
    except KeyError:
        return error_response('Column not found', 404)

    try:
        editor = ColumnEditor(column)
        editor.apply(data)
        saved = store.save_column(editor.save())
        return _board_payload(store, column=saved.to_dict())
    except Exception as e:
        return safe_error_response(e)


@tracker_bp.route('/api/tracker/columns/<column_id>', methods=['DELETE'])
@login_required
@tracker_required
def api_delete_column(column_id):
    store = _store()
    if not store.remove_column(column_id):
        return error_response('Column not found', 404)
    return _board_payload(store)


@tracker_bp.route('/api/tracker/columns/<column_id>/lock', methods=['POST'])
@login_required
@tracker_required
def api_toggle_lock(column_id):
    store = _store()
    try:
        column = store.toggle_lock(column_id)
    except KeyError:
        return error_response('Column not found', 404)
    return _board_payload(store, column=column.to_dict())


@tracker_bp.route('/api/tracker/columns/<column_id>/messages', methods=['POST'])
@login_required
@tracker_required
def api_append_message(column_id):
    data, error = get_json_or_error()
    if error:
        return error
    content = (data.get('content') or '').strip()
    if not content:
        return error_response('content is required')

    store = _store()
    try:
        store.append_message(column_id, content)
    except KeyError:
        return error_response('Column not found', 404)
    return _board_payload(store)


@tracker_bp.route('/api/tracker/columns/<column_id>/image', methods=['POST'])
@login_required
@tracker_required
def api_upload_image(column_id):
    """Form data: image (multipart)."""
    file = request.files.get('image')
    if not file or not file.filename:
        return error_response('No image uploaded')

    data = file.read()
    if len(data) > MAX_IMAGE_BYTES:
        return error_response('Image must be 5 MB or smaller', 413)

    store = _store()
    try:
        _, column = store.find_column(column_id)
    except KeyError:
        return error_response('Column not found', 404)

    try:
        editor = ColumnEditor(column)
        editor.upload_image(data, file.mimetype)
        saved = store.save_column(editor.save())
        return _board_payload(store, column=saved.to_dict())
    except Exception as e:
        return safe_error_response(e)


@tracker_bp.route('/api/tracker/columns/<column_id>/export', methods=['GET'])
@login_required
@tracker_required
def api_export_column(column_id):
    try:
        _, column = _store().find_column(column_id)
    except KeyError:
        return error_response('Column not found', 404)

    try:
        pdf = export_pdf(column)
    except Exception as e:
        return safe_error_response(e)
    return send_file(pdf, mimetype='application/pdf', as_attachment=True,
                     download_name=export_filename(column))


# ════════════════════════════════════════════════════════════════
# Ordering
# ════════════════════════════════════════════════════════════════

@tracker_bp.route('/api/tracker/drag', methods=['POST'])
@login_required
@tracker_required
def api_drag():
    """Body: {activeId, overId}. overId may be a column id or a category id."""
    data, error = get_json_or_error()
    if error:
        return error
    active_id = data.get('activeId')
    if not active_id:
        return error_response('activeId is required')

    store = _store()
    changed = store.handle_drag_end(active_id, data.get('overId'))
    return _board_payload(store, changed=changed)


@tracker_bp.route('/api/tracker/selection/move', methods=['POST'])
@login_required
@tracker_required
def api_selection_move():
    """Body: {selection: [{columnId, categoryId}], line}. line is 1-based."""
    data, error = get_json_or_error()
    if error:
        return error

    line = data.get('line')
    if not isinstance(line, int) or isinstance(line, bool):
        return error_response('line must be an integer')

    store = _store()
    try:
        panel = AdvancedPanel(store, _selection_from(data))
        changed = panel.move_to_line(line)
    except Exception as e:
        return safe_error_response(e)
    return _board_payload(store, changed=changed)


@tracker_bp.route('/api/tracker/selection/highlight', methods=['POST'])
@login_required
@tracker_required
def api_selection_highlight():
    """Body: {selection: [...], color}."""
    data, error = get_json_or_error()
    if error:
        return error

    store = _store()
    try:
        panel = AdvancedPanel(store, _selection_from(data))
        panel.highlight(data.get('color') or '')
    except Exception as e:
        return safe_error_response(e)
    return _board_payload(store)


@tracker_bp.route('/api/tracker/selection/delete', methods=['POST'])
@login_required
@tracker_required
def api_selection_delete():
    """Body: {selection: [...]}. Soft-deletes every selected column."""
    data, error = get_json_or_error()
    if error:
        return error

    store = _store()
    try:
        panel = AdvancedPanel(store, _selection_from(data))
        removed = panel.delete()
    except Exception as e:
        return safe_error_response(e)
    logger.info(f'User {current_user.id} trashed {removed} column(s)')
    return _board_payload(store, removed=removed)
