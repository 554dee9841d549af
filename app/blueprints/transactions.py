"""Transactions blueprint - point-of-sale checkout and sales history."""
from flask import Blueprint, request, jsonify, current_app, g
from app.database import get_session
from app.middleware import require_user
from app.exceptions import StockAppError, InsufficientStockError, ValidationError
from app.services import transaction_service
from app.blueprints.metrics import observe_sale, observe_rejection

transactions_bp = Blueprint('transactions', __name__, url_prefix='/api/transactions')


def _get_json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


@transactions_bp.route('', methods=['GET'])
@transactions_bp.route('/', methods=['GET'])
def list_transactions():
    """List transactions, newest first."""
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', current_app.config.get('TRANSACTIONS_PAGE_SIZE', 10), type=int)

    transactions = transaction_service.list_transactions(get_session(), page=page, limit=limit)
    return jsonify({'transactions': [t.to_dict() for t in transactions]})


@transactions_bp.route('', methods=['POST'])
@transactions_bp.route('/', methods=['POST'])
@require_user
def create_transaction():
    """Record a sale: validate the cart, then commit header, items, stock and movements."""
    data = _get_json_body()

    try:
        transaction_id, transaction_code = transaction_service.record_sale(
            data.get('items'),
            get_session(),
            acting_user_id=g.user_id,
            payment_method=data.get('payment_method'),
            notes=data.get('notes'),
            code_prefix=current_app.config.get('TRANSACTION_CODE_PREFIX', 'TRX'),
            attempts=current_app.config.get('SALE_RETRY_ATTEMPTS', 3)
        )
    except InsufficientStockError:
        observe_rejection('insufficient_stock')
        raise
    except StockAppError as e:
        observe_rejection(type(e).__name__)
        raise

    observe_sale(len(data['items']))
    return jsonify({
        'message': 'Transaction created successfully',
        'transactionId': transaction_id,
        'transactionCode': transaction_code
    })


@transactions_bp.route('/preview', methods=['POST'])
def preview_transaction():
    """Dry run: validate a cart and return its totals without writing."""
    data = _get_json_body()
    preview = transaction_service.preview_sale(data.get('items'), get_session())
    return jsonify(preview)


@transactions_bp.route('/<int:transaction_id>', methods=['GET'])
def get_transaction(transaction_id: int):
    """Transaction header with its line items."""
    transaction = transaction_service.get_transaction(get_session(), transaction_id)
    return jsonify({'transaction': transaction.to_dict(include_items=True)})
