"""User Repository - data access for users and their role flags."""
from typing import Optional, Dict, Any
from werkzeug.security import check_password_hash

from core.base_repository import BaseRepository

_USER_SELECT = '''
    SELECT u.*, r.name as role_name,
           r.can_access_crm, r.can_edit_crm, r.can_export_crm,
           r.can_access_tracker, r.can_access_inventory, r.can_access_settings
    FROM users u
    LEFT JOIN roles r ON u.role_id = r.id
'''


class UserRepository(BaseRepository):
    """Repository for user data access operations."""

    def get_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Get a user by ID with role information."""
        return self.query_one(_USER_SELECT + ' WHERE u.id = %s', (user_id,))

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Get a user by email address with role information."""
        return self.query_one(_USER_SELECT + ' WHERE LOWER(u.email) = LOWER(%s)', (email,))

    def update_last_login(self, user_id: int) -> bool:
        return self.execute('''
            UPDATE users SET last_login = CURRENT_TIMESTAMP
            WHERE id = %s
        ''', (user_id,)) > 0

    def authenticate(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """Return the user row if the credentials are valid and the user is active."""
        user = self.get_by_email(email)
        if not user or not user.get('is_active', False) or not user.get('password_hash'):
            return None
        if not check_password_hash(user['password_hash'], password):
            return None
        return user
