"""CRM API routes - customer search, detail, status, saved views, activities."""

import logging
from flask import jsonify, request
from flask_login import login_required, current_user

from . import crm_bp
from .repositories import CustomerRepository, SavedViewRepository, ActivityRepository
from .filters import (
    from_query_params, count_active_filters, filter_chips, filter_options,
)
from .activities import parse_activity
from core.utils.api_helpers import (
    permission_required, get_json_or_error, error_response, safe_error_response,
)

logger = logging.getLogger('dealerdesk.crm.routes')

_customer_repo = CustomerRepository()
_view_repo = SavedViewRepository()
_activity_repo = ActivityRepository()

crm_required = permission_required('can_access_crm', 'CRM access denied')
crm_edit_required = permission_required('can_edit_crm', 'CRM edit access denied')

MAX_PAGE_SIZE = 200


# ════════════════════════════════════════════════════════════════
# Customers
# ════════════════════════════════════════════════════════════════

@crm_bp.route('/api/crm/customers', methods=['GET'])
@login_required
@crm_required
def api_customers():
    """Filtered customer list. Query string uses the FilterState layout plus search/limit/offset."""
    filters = from_query_params(request.args)
    search = request.args.get('search', '').strip() or None
    limit = max(1, min(request.args.get('limit', 50, type=int), MAX_PAGE_SIZE))
    offset = max(request.args.get('offset', 0, type=int), 0)

    try:
        rows, total = _customer_repo.search(filters, search=search, limit=limit,
                                            offset=offset, user=current_user)
    except Exception as e:
        return safe_error_response(e)

    return jsonify({
        'customers': rows,
        'total': total,
        'activeFilters': count_active_filters(filters),
        'chips': [chip.to_dict() for chip in filter_chips(filters)],
    })


@crm_bp.route('/api/crm/customers/<int:customer_id>', methods=['GET'])
@login_required
@crm_required
def api_customer_detail(customer_id):
    customer = _customer_repo.get_by_id(customer_id, user=current_user)
    if not customer:
        return error_response('Customer not found', 404)
    activities = _activity_repo.list_for_customer(customer_id)
    return jsonify({'customer': customer, 'activities': activities})


@crm_bp.route('/api/crm/customers/<int:customer_id>/status', methods=['PUT'])
@login_required
@crm_required
@crm_edit_required
def api_update_status(customer_id):
    data, error = get_json_or_error()
    if error:
        return error
    status = data.get('status')
    if not status:
        return error_response('status is required')

    # Visibility check before touching the row
    if not _customer_repo.get_by_id(customer_id, user=current_user):
        return error_response('Customer not found', 404)

    try:
        previous = _customer_repo.update_status(customer_id, status, user_id=current_user.id)
    except Exception as e:
        return safe_error_response(e)
    if previous is None:
        return error_response('Customer not found', 404)
    return jsonify({'success': True, 'previous': previous, 'status': status})


@crm_bp.route('/api/crm/stats', methods=['GET'])
@login_required
@crm_required
def api_stats():
    return jsonify(_customer_repo.get_stats(user=current_user) or {})


@crm_bp.route('/api/crm/filters/options', methods=['GET'])
@login_required
@crm_required
def api_filter_options():
    return jsonify(filter_options())


# ════════════════════════════════════════════════════════════════
# Saved views
# ════════════════════════════════════════════════════════════════

@crm_bp.route('/api/crm/views', methods=['GET'])
@login_required
@crm_required
def api_list_views():
    return jsonify({'views': _view_repo.list_for_user(current_user.id)})


@crm_bp.route('/api/crm/views', methods=['POST'])
@login_required
@crm_required
def api_create_view():
    """Body: {name, filters: {<query-param layout>}, isGlobal, isDefault}."""
    data, error = get_json_or_error()
    if error:
        return error

    name = (data.get('name') or '').strip()
    if not name:
        return error_response('name is required')
    if len(name) > 100:
        return error_response('Name must be 100 characters or less')

    is_global = bool(data.get('isGlobal'))
    if is_global and not current_user.can_create_global_views:
        return error_response('Only owners and directors can create global views', 403)

    filters = from_query_params(data.get('filters') or {})
    try:
        view_id = _view_repo.create(current_user.id, name, filters,
                                    is_global=is_global,
                                    is_default=bool(data.get('isDefault')))
    except Exception as e:
        if 'idx_crm_saved_views_unique_name' in str(e):
            return error_response(f'A view named "{name}" already exists', 409)
        return safe_error_response(e)
    return jsonify({'success': True, 'id': view_id}), 201


@crm_bp.route('/api/crm/views/<int:view_id>', methods=['DELETE'])
@login_required
@crm_required
def api_delete_view(view_id):
    if _view_repo.delete(view_id, current_user.id,
                         can_delete_global=current_user.can_create_global_views):
        return jsonify({'success': True})
    return error_response('View not found', 404)


# ════════════════════════════════════════════════════════════════
# Activities
# ════════════════════════════════════════════════════════════════

@crm_bp.route('/api/crm/activities', methods=['POST'])
@login_required
@crm_required
def api_create_activity():
    data, error = get_json_or_error()
    if error:
        return error

    try:
        activity = parse_activity(data, user_id=current_user.id)
    except ValueError as e:
        return error_response(str(e))

    if not _customer_repo.get_by_id(activity.customer_id, user=current_user):
        return error_response('Customer not found', 404)

    try:
        activity_id = _activity_repo.create(activity)
    except Exception as e:
        return safe_error_response(e)
    return jsonify({'success': True, 'id': activity_id, 'activity': activity.to_dict()}), 201


@crm_bp.route('/api/crm/customers/<int:customer_id>/activities', methods=['GET'])
@login_required
@crm_required
def api_customer_activities(customer_id):
    if not _customer_repo.get_by_id(customer_id, user=current_user):
        return error_response('Customer not found', 404)
    limit = max(1, min(request.args.get('limit', 50, type=int), MAX_PAGE_SIZE))
    return jsonify({'activities': _activity_repo.list_for_customer(customer_id, limit)})
