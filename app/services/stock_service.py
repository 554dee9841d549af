"""
Stock ledger service.
Owns every read and write of the per-product stock row.
"""
import logging
from typing import Dict, List, Optional, Iterable
from sqlalchemy import update, func, case
from app.models import Stock, Product, StockMovement, MovementType, MovementReason
from app.exceptions import StockAppError, ValidationError, NotFoundError, InsufficientStockError, PersistenceError
from app.services import movement_service
from app.services.concurrency import lock_for_update, begin_write, run_with_retry
from app.database import MAX_ID

logger = logging.getLogger(__name__)


def get_entry(session, product_id: int) -> Stock:
    """Return the ledger entry for a product or raise NotFoundError naming it."""
    entry = None
    if product_id <= MAX_ID:
        entry = session.query(Stock).filter(Stock.product_id == product_id).first()
    if not entry:
        raise NotFoundError(
            f'Product with ID {product_id} not found.',
            payload={'product_id': product_id}
        )
    return entry


def lock_entries(session, product_ids: Iterable[int]) -> Dict[int, Stock]:
    """Lock stock rows FOR UPDATE in product order and return them by product id."""
    ids = sorted(set(product_ids))
    if not ids:
        return {}

    query = session.query(Stock).filter(Stock.product_id.in_(ids)).order_by(Stock.product_id).populate_existing()
    return {entry.product_id: entry for entry in lock_for_update(query).all()}


def create_entry(session, product_id: int, min_stock: int = 0) -> Stock:
    """Create the zero-quantity ledger row for a new product. Does not commit."""
    entry = Stock(
        product_id=product_id,
        current_stock=0,
        min_stock=min_stock,
        stock_in=0,
        stock_out=0
    )
    session.add(entry)
    session.flush()
    return entry


def decrement(session, product_id: int, quantity: int) -> None:
    """
    Atomically remove quantity from a product's stock.

    The update only matches while current_stock >= quantity, so two writers
    holding stale reads can never drive the row negative. Never clamps.
    """
    result = session.execute(
        update(Stock)
        .where(Stock.product_id == product_id, Stock.current_stock >= quantity)
        .values(
            current_stock=Stock.current_stock - quantity,
            stock_out=Stock.stock_out + quantity,
            last_updated=func.now()
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        entry = get_entry(session, product_id)
        session.refresh(entry)
        raise InsufficientStockError(product_id, entry.product.name, entry.current_stock, quantity)


def increment(session, product_id: int, quantity: int) -> None:
    """Atomically add received quantity to a product's stock."""
    result = session.execute(
        update(Stock)
        .where(Stock.product_id == product_id)
        .values(
            current_stock=Stock.current_stock + quantity,
            stock_in=Stock.stock_in + quantity,
            last_updated=func.now()
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError(
            f'Product with ID {product_id} not found.',
            payload={'product_id': product_id}
        )


def receive_stock(
    session,
    product_id: int,
    quantity: int,
    acting_user_id: Optional[int] = None,
    notes: Optional[str] = None,
    attempts: int = 3
) -> int:
    """
    Stock-in: raise the ledger and append an inbound manual movement in one commit.

    Returns the movement id.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError('Product ID and valid quantity are required')

    def _op():
        begin_write(session)
        get_entry(session, product_id)
        increment(session, product_id, quantity)
        movement_id = movement_service.append_movement(
            session,
            product_id,
            MovementType.IN,
            quantity,
            MovementReason.MANUAL,
            acting_user_id=acting_user_id,
            notes=notes
        )
        session.commit()
        return movement_id

    try:
        movement_id = run_with_retry(session, _op, attempts=attempts)
    except StockAppError:
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Stock-in failed for product {product_id}: {e}", exc_info=True)
        raise PersistenceError(details=str(e)) from e

    logger.info(f"Stock in: product {product_id} +{quantity} by user {acting_user_id}")
    return movement_id


def list_stock(session, low_stock_only: bool = False) -> List[Stock]:
    """Ledger rows of active products, lowest stock first."""
    query = session.query(Stock).join(Product, Product.id == Stock.product_id).filter(
        Product.is_active == True  # noqa: E712
    )
    if low_stock_only:
        query = query.filter(Stock.current_stock <= Stock.min_stock)
    return query.order_by(Stock.current_stock.asc(), Stock.product_id.asc()).all()


def reconcile(session, product_id: Optional[int] = None) -> List[dict]:
    """
    Check every ledger row against the movement log.

    A row is consistent when current_stock equals the sum of inbound minus
    outbound movements, and equals stock_in - stock_out. Returns mismatches.
    """
    signed_qty = case(
        (StockMovement.movement_type == MovementType.IN, StockMovement.quantity),
        else_=-StockMovement.quantity
    )
    movement_query = session.query(
        StockMovement.product_id,
        func.coalesce(func.sum(signed_qty), 0)
    ).group_by(StockMovement.product_id)
    stock_query = session.query(Stock)
    if product_id is not None:
        movement_query = movement_query.filter(StockMovement.product_id == product_id)
        stock_query = stock_query.filter(Stock.product_id == product_id)

    net_by_product = {pid: int(net) for pid, net in movement_query.all()}

    mismatches = []
    for entry in stock_query.order_by(Stock.product_id).all():
        expected = net_by_product.get(entry.product_id, 0)
        counters = entry.stock_in - entry.stock_out
        if entry.current_stock != expected or entry.current_stock != counters:
            mismatches.append({
                'product_id': entry.product_id,
                'current_stock': entry.current_stock,
                'expected_from_movements': expected,
                'stock_in': entry.stock_in,
                'stock_out': entry.stock_out,
            })
    return mismatches
