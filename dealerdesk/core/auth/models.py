"""DealerDesk auth models.

User model for Flask-Login authentication.
"""
from flask_login import UserMixin

# Roles allowed to publish CRM saved views to everyone
GLOBAL_VIEW_ROLES = ('owner', 'director')


class User(UserMixin):
    """User class for Flask-Login."""

    def __init__(self, user_data):
        self.id = user_data['id']
        self.email = user_data['email']
        self.name = user_data['name']
        self.phone = user_data.get('phone')
        self.role_id = user_data.get('role_id')
        self.role_name = user_data.get('role_name') or 'salesperson'
        self.manager_id = user_data.get('manager_id')
        self.is_active_user = user_data.get('is_active', True)

        # Role permissions
        self.can_access_crm = user_data.get('can_access_crm', False)
        self.can_edit_crm = user_data.get('can_edit_crm', False)
        self.can_export_crm = user_data.get('can_export_crm', False)
        self.can_access_tracker = user_data.get('can_access_tracker', False)
        self.can_access_inventory = user_data.get('can_access_inventory', False)
        self.can_access_settings = user_data.get('can_access_settings', False)

        self._permission_map = {
            'crm.view': self.can_access_crm,
            'crm.edit': self.can_edit_crm,
            'crm.export': self.can_export_crm,
            'tracker.access': self.can_access_tracker,
            'inventory.view': self.can_access_inventory,
            'system.settings': self.can_access_settings,
        }

    @property
    def is_active(self):
        return self.is_active_user

    @property
    def can_create_global_views(self):
        return self.role_name in GLOBAL_VIEW_ROLES

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role_name,
            'permissions': {k: bool(v) for k, v in self._permission_map.items()},
        }
