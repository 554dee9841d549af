"""Transaction model."""
from sqlalchemy import Column, BigInteger, String, Text, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, IdType


class Transaction(Base):
    """Transaction (completed sale). Immutable once committed."""

    __tablename__ = 'transactions'

    id = Column(IdType, primary_key=True, autoincrement=True)
    transaction_code = Column(String(40), nullable=False, unique=True, index=True)
    user_id = Column(BigInteger, ForeignKey('users.id'), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(30), nullable=False, default='cash')
    notes = Column(Text, nullable=True)
    transaction_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    user = relationship('AppUser')
    items = relationship(
        'TransactionItem',
        back_populates='transaction',
        order_by='TransactionItem.id',
        cascade='all, delete-orphan'
    )

    def to_dict(self, include_items=False):
        rv = {
            'id': self.id,
            'transaction_code': self.transaction_code,
            'user_id': self.user_id,
            'kasir_name': self.user.full_name if self.user else None,
            'total_amount': float(self.total_amount),
            'payment_method': self.payment_method,
            'notes': self.notes,
            'transaction_date': self.transaction_date.isoformat() if self.transaction_date else None,
        }
        if include_items:
            rv['items'] = [item.to_dict() for item in self.items]
        return rv

    def __repr__(self):
        return f"<Transaction(id={self.id}, code='{self.transaction_code}', total={self.total_amount})>"
