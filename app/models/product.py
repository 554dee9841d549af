"""Product model."""
from sqlalchemy import Column, BigInteger, String, Text, Boolean, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType


class Product(Base):
    """Catalog product. Its quantity lives on the Stock ledger row."""

    __tablename__ = 'products'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    category_id = Column(BigInteger, ForeignKey('categories.id'), nullable=True)
    description = Column(Text, nullable=True)
    barcode = Column(String(64), nullable=True, unique=True)
    price = Column(Numeric(12, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    category = relationship('Category', foreign_keys=[category_id])
    stock = relationship('Stock', uselist=False, back_populates='product', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}')>"

    @property
    def current_stock(self):
        """Read-only view of the ledger quantity."""
        if self.stock:
            return self.stock.current_stock
        return 0

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'category_id': self.category_id,
            'category_name': self.category.name if self.category else None,
            'description': self.description,
            'barcode': self.barcode,
            'price': float(self.price) if self.price is not None else None,
            'is_active': self.is_active,
            'current_stock': self.current_stock,
            'min_stock': self.stock.min_stock if self.stock else None,
        }
