"""Stock blueprint - ledger levels, stock-in and movement history."""
from flask import Blueprint, request, jsonify, current_app, g
from app.database import get_session
from app.middleware import require_user
from app.exceptions import ValidationError
from app.services import stock_service, movement_service

stock_bp = Blueprint('stock', __name__, url_prefix='/api/stock')


@stock_bp.route('', methods=['GET'])
@stock_bp.route('/', methods=['GET'])
def list_stock():
    """All active products' stock, lowest first. ?low_stock=true keeps rows at or under minimum."""
    low_stock_only = request.args.get('low_stock', '').lower() == 'true'
    entries = stock_service.list_stock(get_session(), low_stock_only=low_stock_only)
    return jsonify({'stock': [entry.to_dict() for entry in entries]})


@stock_bp.route('/in', methods=['POST'])
@require_user
def stock_in():
    """Receive stock for a product."""
    data = request.get_json(silent=True) or {}
    product_id = data.get('product_id')
    quantity = data.get('quantity')

    if not isinstance(product_id, int) or isinstance(product_id, bool):
        raise ValidationError('Product ID and valid quantity are required')

    movement_id = stock_service.receive_stock(
        get_session(),
        product_id,
        quantity,
        acting_user_id=g.user_id,
        notes=data.get('notes'),
        attempts=current_app.config.get('SALE_RETRY_ATTEMPTS', 3)
    )
    return jsonify({'message': 'Stock added successfully', 'movementId': movement_id})


@stock_bp.route('/movements', methods=['GET'])
def list_movements():
    """Movement history, newest first."""
    product_id = request.args.get('product_id', type=int)
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', current_app.config.get('MOVEMENTS_PAGE_SIZE', 20), type=int)

    movements = movement_service.list_movements(get_session(), product_id=product_id, page=page, limit=limit)
    return jsonify({'movements': [m.to_dict() for m in movements]})


@stock_bp.route('/reconcile', methods=['GET'])
def reconcile():
    """Compare every ledger row with its movement history."""
    product_id = request.args.get('product_id', type=int)
    mismatches = stock_service.reconcile(get_session(), product_id=product_id)
    return jsonify({'consistent': not mismatches, 'mismatches': mismatches})
