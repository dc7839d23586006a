"""CRM repositories package."""
from .customer_repository import CustomerRepository
from .saved_view_repository import SavedViewRepository
from .activity_repository import ActivityRepository

__all__ = ['CustomerRepository', 'SavedViewRepository', 'ActivityRepository']
