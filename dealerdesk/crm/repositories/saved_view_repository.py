"""CRM saved views repository.

A saved view is a named FilterState stored in its query-param layout
({"status": ["hot"], "city": "Tulsa"}). Personal views belong to one user;
global views have user_id NULL and are listed for everyone.
"""

import json
import logging

from core.base_repository import BaseRepository
from ..filters import to_query_params

logger = logging.getLogger('dealerdesk.crm.repositories.saved_view')


def filters_to_json(filters) -> dict:
    """Query pairs -> {key: value | [values]} for the JSONB column."""
    data = {}
    for key, value in to_query_params(filters):
        if key in data:
            existing = data[key]
            data[key] = (existing if isinstance(existing, list) else [existing]) + [value]
        elif key in ('status', 'temperature', 'priority'):
            data[key] = [value]
        else:
            data[key] = value
    return data


class SavedViewRepository(BaseRepository):

    def list_for_user(self, user_id: int) -> list:
        """Global views first, then the user's own, each by name."""
        return self.query_all('''
            SELECT id, user_id, name, filters, is_global, is_default, created_at, updated_at
            FROM crm_saved_views
            WHERE user_id = %s OR is_global = TRUE
            ORDER BY is_global DESC, name ASC
        ''', (user_id,))

    def get_default(self, user_id: int) -> dict | None:
        return self.query_one('''
            SELECT id, user_id, name, filters, is_global, is_default, created_at, updated_at
            FROM crm_saved_views
            WHERE user_id = %s AND is_default = TRUE
            LIMIT 1
        ''', (user_id,))

    def create(self, user_id: int, name: str, filters, is_global: bool = False,
               is_default: bool = False) -> int:
        """Create a view. Returns its id.

        A new default replaces the user's previous default in the same
        transaction. Global views are never anyone's default.
        """
        owner_id = None if is_global else user_id
        is_default = bool(is_default) and not is_global
        payload = json.dumps(filters_to_json(filters))

        def _work(cursor):
            if is_default:
                cursor.execute('''
                    UPDATE crm_saved_views SET is_default = FALSE, updated_at = CURRENT_TIMESTAMP
                    WHERE user_id = %s AND is_default = TRUE
                ''', (user_id,))

            cursor.execute('''
                INSERT INTO crm_saved_views (user_id, name, filters, is_global, is_default, created_by)
                VALUES (%s, %s, %s::jsonb, %s, %s, %s)
                RETURNING id
            ''', (owner_id, name, payload, bool(is_global), is_default, user_id))
            return cursor.fetchone()['id']

        view_id = self.execute_many(_work)
        logger.info(f'Saved view {view_id} "{name}" created by user {user_id} (global={bool(is_global)})')
        return view_id

    def delete(self, view_id: int, user_id: int, can_delete_global: bool = False) -> bool:
        """Delete a personal view, or a global one when the caller may manage globals."""
        if can_delete_global:
            rowcount = self.execute(
                'DELETE FROM crm_saved_views WHERE id = %s AND (user_id = %s OR is_global = TRUE)',
                (view_id, user_id)
            )
        else:
            rowcount = self.execute(
                'DELETE FROM crm_saved_views WHERE id = %s AND user_id = %s',
                (view_id, user_id)
            )
        return rowcount > 0
