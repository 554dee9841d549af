"""Stock Movement model."""
from sqlalchemy import Column, BigInteger, Integer, DateTime, Text, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType
import enum


class MovementType(enum.Enum):
    """Direction of a stock movement."""
    IN = "in"
    OUT = "out"


class MovementReason(enum.Enum):
    """What caused a stock movement."""
    MANUAL = "manual"
    TRANSACTION = "transaction"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class StockMovement(Base):
    """Stock Movement - append-only audit entry for one quantity change."""

    __tablename__ = 'stock_movements'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_stock_movements_quantity_positive'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('products.id'), nullable=False, index=True)
    movement_type = Column(
        Enum(MovementType, name='movement_type', values_callable=_enum_values),
        nullable=False
    )
    quantity = Column(Integer, nullable=False)
    reference_type = Column(
        Enum(MovementReason, name='movement_reference_type', values_callable=_enum_values),
        nullable=False
    )
    reference_id = Column(BigInteger, nullable=True)
    user_id = Column(BigInteger, ForeignKey('users.id'), nullable=True)
    notes = Column(Text, nullable=True)
    movement_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    product = relationship('Product')
    user = relationship('AppUser')

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product.name if self.product else None,
            'movement_type': self.movement_type.value,
            'quantity': self.quantity,
            'reference_type': self.reference_type.value,
            'reference_id': self.reference_id,
            'user_id': self.user_id,
            'user_name': self.user.full_name if self.user else None,
            'notes': self.notes,
            'movement_date': self.movement_date.isoformat() if self.movement_date else None,
        }

    def __repr__(self):
        return f"<StockMovement(id={self.id}, type={self.movement_type.value}, quantity={self.quantity})>"
