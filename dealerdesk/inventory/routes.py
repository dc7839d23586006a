"""Inventory API routes - available trailers, lookups, suggested price, price guardrail."""

import logging
from flask import jsonify, request
from flask_login import login_required

from . import inventory_bp
from .pricing import validate_price_range, compute_selling_price
from .repositories import TrailerRepository
from core.utils.api_helpers import (
    permission_required, get_json_or_error, error_response, safe_error_response,
)

logger = logging.getLogger('dealerdesk.inventory.routes')

_trailer_repo = TrailerRepository()

inventory_required = permission_required('can_access_inventory', 'Inventory access denied')


@inventory_bp.route('/api/inventory/trailers', methods=['GET'])
@login_required
@inventory_required
def api_available_trailers():
    trailers = _trailer_repo.get_available(category=request.args.get('category') or None)
    return jsonify({'trailers': trailers})


@inventory_bp.route('/api/inventory/trailers/<stock_number>', methods=['GET'])
@login_required
@inventory_required
def api_trailer(stock_number):
    trailer = _trailer_repo.get_by_stock_number(stock_number)
    if not trailer:
        return error_response('Trailer not found', 404)
    return jsonify({'trailer': trailer})


@inventory_bp.route('/api/inventory/trailers/<stock_number>/suggested-price', methods=['GET'])
@login_required
@inventory_required
def api_suggested_price(stock_number):
    """Listed price derived from the trailer's cost."""
    row = _trailer_repo.get_cost(stock_number)
    if not row:
        return error_response('Trailer not found', 404)
    result = compute_selling_price(row.get('cost'))
    return jsonify({'success': True, 'stockNumber': row['stock_number'], **result.to_dict()})


@inventory_bp.route('/api/inventory/vin/<vin>', methods=['GET'])
@login_required
@inventory_required
def api_trailer_by_vin(vin):
    trailer = _trailer_repo.get_by_vin(vin)
    if not trailer:
        return error_response('Trailer not found', 404)
    return jsonify({'trailer': trailer})


@inventory_bp.route('/api/inventory/price-check', methods=['POST'])
@login_required
@inventory_required
def api_price_check():
    """Body: {stockNumber, sellingPrice}. Checked against the trailer's listed sale_price."""
    data, error = get_json_or_error()
    if error:
        return error

    stock_number = (data.get('stockNumber') or '').strip()
    if not stock_number or data.get('sellingPrice') is None:
        return error_response('stockNumber and sellingPrice are required')

    trailer = _trailer_repo.get_by_stock_number(stock_number)
    if not trailer:
        return error_response('Trailer not found', 404)
    if trailer.get('sale_price') is None:
        return error_response('Trailer has no listed price', 409)

    try:
        check = validate_price_range(data['sellingPrice'], trailer['sale_price'])
    except Exception as e:
        return safe_error_response(e)

    if not check.valid:
        logger.info(f'Price {data["sellingPrice"]} outside guardrail for {stock_number}')
    return jsonify({'success': True, 'stockNumber': stock_number, **check.to_dict()})
