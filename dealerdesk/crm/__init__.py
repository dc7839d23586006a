"""DealerDesk CRM - customer pipeline, saved filter views and activity timeline.

Customers are filtered through a shared FilterState whose query-string layout
is also what saved views store.
"""
from flask import Blueprint

crm_bp = Blueprint('crm', __name__)

from . import routes  # noqa: E402, F401
