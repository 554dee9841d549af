"""Stock ledger model."""
from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType


class Stock(Base):
    """Stock ledger entry - 1:1 with Product."""

    __tablename__ = 'stock'
    __table_args__ = (
        CheckConstraint('current_stock >= 0', name='ck_stock_current_non_negative'),
        CheckConstraint('current_stock = stock_in - stock_out', name='ck_stock_balance'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('products.id'), nullable=False, unique=True)
    current_stock = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    stock_in = Column(Integer, nullable=False, default=0)
    stock_out = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationship
    product = relationship('Product', back_populates='stock')

    @property
    def is_low(self):
        return self.current_stock <= self.min_stock

    def to_dict(self):
        product = self.product
        return {
            'product_id': self.product_id,
            'product_name': product.name if product else None,
            'price': float(product.price) if product else None,
            'category_name': product.category.name if product and product.category else None,
            'current_stock': self.current_stock,
            'min_stock': self.min_stock,
            'stock_in': self.stock_in,
            'stock_out': self.stock_out,
            'is_low': self.is_low,
            'last_updated': self.last_updated.isoformat() if self.last_updated else None,
        }

    def __repr__(self):
        return f"<Stock(product_id={self.product_id}, current_stock={self.current_stock})>"
