"""
Movement log service.
Append-only audit trail of every stock quantity change.
"""
from typing import List, Optional
from sqlalchemy.orm import joinedload
from app.models import StockMovement, MovementType, MovementReason


def append_movement(
    session,
    product_id: int,
    direction: MovementType,
    quantity: int,
    reason: MovementReason,
    reference_id: Optional[int] = None,
    acting_user_id: Optional[int] = None,
    notes: Optional[str] = None
) -> int:
    """Append one movement record and return its id. Does not commit."""
    movement = StockMovement(
        product_id=product_id,
        movement_type=direction,
        quantity=quantity,
        reference_type=reason,
        reference_id=reference_id,
        user_id=acting_user_id,
        notes=notes
    )
    session.add(movement)
    session.flush()
    return movement.id


def list_movements(session, product_id: Optional[int] = None, page: int = 1, limit: int = 20) -> List[StockMovement]:
    """List movements newest first, optionally for a single product."""
    page = max(page, 1)
    query = session.query(StockMovement).options(
        joinedload(StockMovement.product),
        joinedload(StockMovement.user)
    )
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)

    return query.order_by(
        StockMovement.movement_date.desc(),
        StockMovement.id.desc()
    ).limit(limit).offset((page - 1) * limit).all()


def movements_for_transaction(session, transaction_id: int) -> List[StockMovement]:
    """Outbound movements written by one sale."""
    return session.query(StockMovement).filter(
        StockMovement.reference_type == MovementReason.TRANSACTION,
        StockMovement.reference_id == transaction_id
    ).order_by(StockMovement.id).all()
