"""Transaction Item model."""
from sqlalchemy import Column, BigInteger, Integer, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.database import Base, IdType


class TransactionItem(Base):
    """Transaction line item (detalle de venta)."""

    __tablename__ = 'transaction_items'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_transaction_items_quantity_positive'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    transaction_id = Column(BigInteger, ForeignKey('transactions.id'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('products.id'), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)

    # Relationships
    transaction = relationship('Transaction', back_populates='items')
    product = relationship('Product')

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product.name if self.product else None,
            'quantity': self.quantity,
            'unit_price': float(self.unit_price),
            'subtotal': float(self.subtotal),
        }

    def __repr__(self):
        return f"<TransactionItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
