"""
Transaction service with transactional logic.
Handles sale recording: cart validation, stock decrements and movement records.
"""
import logging
import secrets
import time
from decimal import Decimal, InvalidOperation
from datetime import datetime
from typing import List, Dict, Optional, Any, Tuple
from sqlalchemy.orm import joinedload, selectinload
from app.models import Stock, Transaction, TransactionItem, MovementType, MovementReason
from app.exceptions import (
    StockAppError, ValidationError, NotFoundError, InsufficientStockError,
    PersistenceError, UnauthorizedError
)
from app.services import stock_service, movement_service
from app.services.concurrency import begin_write, run_with_retry
from app.database import MAX_ID, MAX_AMOUNT

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
# Width of the transactions.payment_method column
PAYMENT_METHOD_MAX_LENGTH = 30


def generate_transaction_code(prefix: str = 'TRX') -> str:
    """Human-readable, time-ordered code with a random suffix against same-millisecond collisions."""
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


def record_sale(
    items: Any,
    session,
    acting_user_id: Optional[int],
    payment_method: Optional[str] = 'cash',
    notes: Optional[str] = None,
    code_prefix: str = 'TRX',
    attempts: int = 3
) -> Tuple[int, str]:
    """
    Record a sale with full transactional processing.

    The whole cart is validated before anything is written; the header, line
    items, stock decrements and movement records are committed together or
    not at all. Returns (transaction_id, transaction_code).
    """
    if acting_user_id is None:
        raise UnauthorizedError('An acting user is required to record a sale')

    cart_lines = _parse_items(items)
    payment_method = _normalize_payment_method(payment_method)
    notes = _normalize_notes(notes)

    def _op():
        begin_write(session)

        # 1. Lock ledger rows and validate the entire cart
        stock_dict = stock_service.lock_entries(session, [line['product_id'] for line in cart_lines])
        sale_lines, total_amount = _validate_cart(cart_lines, stock_dict)

        # 2. Create the transaction header
        transaction = Transaction(
            transaction_code=generate_transaction_code(code_prefix),
            user_id=acting_user_id,
            total_amount=total_amount,
            payment_method=payment_method,
            notes=notes or None,
            transaction_date=datetime.now()
        )
        session.add(transaction)
        session.flush()
        transaction_id = transaction.id
        transaction_code = transaction.transaction_code

        # 3. Line items, stock decrements and movements, in cart order
        for line in sale_lines:
            session.add(TransactionItem(
                transaction_id=transaction_id,
                product_id=line['product_id'],
                quantity=line['quantity'],
                unit_price=line['unit_price'],
                subtotal=line['subtotal']
            ))
            stock_service.decrement(session, line['product_id'], line['quantity'])
            movement_service.append_movement(
                session,
                line['product_id'],
                MovementType.OUT,
                line['quantity'],
                MovementReason.TRANSACTION,
                reference_id=transaction_id,
                acting_user_id=acting_user_id
            )

        session.commit()
        return transaction_id, transaction_code, total_amount, len(sale_lines)

    try:
        transaction_id, transaction_code, total_amount, line_count = run_with_retry(
            session, _op, attempts=attempts
        )
    except StockAppError as e:
        session.rollback()
        logger.warning(f"Sale rejected: {e.message}")
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Error recording sale: {e}", exc_info=True)
        raise PersistenceError(details=str(e)) from e

    logger.info(
        f"Sale recorded: {transaction_code} (id={transaction_id}) "
        f"total={total_amount} lines={line_count} user={acting_user_id}"
    )
    return transaction_id, transaction_code


def preview_sale(items: Any, session) -> Dict[str, Any]:
    """
    Validate a cart and compute its totals without writing anything.

    Raises the same errors record_sale would raise at validation time.
    """
    cart_lines = _parse_items(items)
    try:
        product_ids = sorted({line['product_id'] for line in cart_lines})
        stock_dict = {
            entry.product_id: entry
            for entry in session.query(Stock).filter(Stock.product_id.in_(product_ids)).all()
        }
        sale_lines, total_amount = _validate_cart(cart_lines, stock_dict)
        return {
            'total_amount': float(total_amount),
            'items': [
                {
                    'product_id': line['product_id'],
                    'product_name': line['product_name'],
                    'quantity': line['quantity'],
                    'unit_price': float(line['unit_price']),
                    'subtotal': float(line['subtotal']),
                    'available': line['available'],
                }
                for line in sale_lines
            ],
        }
    finally:
        session.rollback()


def list_transactions(session, page: int = 1, limit: int = 10) -> List[Transaction]:
    """List transactions newest first."""
    page = max(page, 1)
    return session.query(Transaction).options(
        joinedload(Transaction.user)
    ).order_by(
        Transaction.transaction_date.desc(),
        Transaction.id.desc()
    ).limit(limit).offset((page - 1) * limit).all()


def get_transaction(session, transaction_id: int) -> Transaction:
    """Get a transaction with its line items."""
    transaction = session.query(Transaction).options(
        joinedload(Transaction.user),
        selectinload(Transaction.items).joinedload(TransactionItem.product)
    ).filter(Transaction.id == transaction_id).first()
    if not transaction:
        raise NotFoundError(f'Transaction {transaction_id} not found')
    return transaction


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _parse_items(items: Any) -> List[Dict[str, Any]]:
    """Normalize the raw cart payload; raises ValidationError on malformed input."""
    if not items or not isinstance(items, list):
        raise ValidationError('Transaction items are required')

    lines = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f'Item {index} must be an object')
        product_id = _parse_positive_int(item.get('product_id'), f'Item {index}: product_id')
        if product_id > MAX_ID:
            raise NotFoundError(
                f'Product with ID {product_id} not found.',
                payload={'product_id': product_id}
            )
        quantity = _parse_positive_int(item.get('quantity'), f'Item {index}: quantity')
        unit_price = _parse_price(item.get('unit_price'), f'Item {index}: unit_price')
        lines.append({
            'product_id': product_id,
            'quantity': quantity,
            'unit_price': unit_price,
        })
    return lines


def _parse_positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f'{field} must be a positive integer')
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float) and value.is_integer():
        parsed = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ValidationError(f'{field} must be a positive integer')
    if parsed <= 0:
        raise ValidationError(f'{field} must be a positive integer')
    return parsed


def _parse_price(value: Any, field: str) -> Optional[Decimal]:
    """None means "use the catalog price"."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a number')
    try:
        price = Decimal(str(value))
        if not price.is_finite() or price < 0:
            raise ValidationError(f'{field} must be a non-negative number')
        if price > MAX_AMOUNT:
            raise ValidationError(f'{field} must not exceed {MAX_AMOUNT}')
        return price.quantize(CENT)
    except InvalidOperation:
        raise ValidationError(f'{field} must be a number')


def _normalize_payment_method(payment_method: Any) -> str:
    if payment_method is None:
        return 'cash'
    if not isinstance(payment_method, str):
        raise ValidationError('payment_method must be a string')
    payment_method = payment_method.strip() or 'cash'
    if len(payment_method) > PAYMENT_METHOD_MAX_LENGTH:
        raise ValidationError(f'payment_method must be at most {PAYMENT_METHOD_MAX_LENGTH} characters')
    return payment_method


def _normalize_notes(notes: Any) -> Optional[str]:
    if notes is None:
        return None
    if not isinstance(notes, str):
        raise ValidationError('notes must be a string')
    return notes.strip() or None


def _validate_cart(cart_lines: List[Dict[str, Any]], stock_dict: Dict[int, Stock]) -> Tuple[List[Dict[str, Any]], Decimal]:
    """
    Check every line against the ledger before any write.

    Quantities of repeated products are summed. Returns the priced lines and
    the sale total.
    """
    requested: Dict[int, int] = {}
    for line in cart_lines:
        requested[line['product_id']] = requested.get(line['product_id'], 0) + line['quantity']

    # Products are checked in first-appearance order so errors name the earliest bad line
    for product_id, quantity in requested.items():
        entry = stock_dict.get(product_id)
        if entry is None:
            raise NotFoundError(
                f'Product with ID {product_id} not found.',
                payload={'product_id': product_id}
            )
        product = entry.product
        if not product.is_active:
            raise ValidationError(
                f'Product {product.name} (ID {product_id}) is not active',
                payload={'product_id': product_id}
            )
        if entry.current_stock < quantity:
            raise InsufficientStockError(product_id, product.name, entry.current_stock, quantity)

    sale_lines = []
    total_amount = Decimal('0.00')
    for line in cart_lines:
        entry = stock_dict[line['product_id']]
        unit_price = line['unit_price'] if line['unit_price'] is not None else Decimal(entry.product.price)
        subtotal = unit_price * line['quantity']
        if subtotal > MAX_AMOUNT or total_amount + subtotal > MAX_AMOUNT:
            raise ValidationError(f'Transaction total must not exceed {MAX_AMOUNT}')
        subtotal = subtotal.quantize(CENT)
        sale_lines.append({
            'product_id': line['product_id'],
            'product_name': entry.product.name,
            'quantity': line['quantity'],
            'unit_price': unit_price.quantize(CENT),
            'subtotal': subtotal,
            'available': entry.current_stock,
        })
        total_amount += subtotal

    return sale_lines, total_amount.quantize(CENT)
