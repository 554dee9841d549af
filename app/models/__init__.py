"""Models package - exports all SQLAlchemy models."""
from app.models.app_user import AppUser
from app.models.category import Category
from app.models.product import Product
from app.models.stock import Stock
from app.models.stock_movement import StockMovement, MovementType, MovementReason
from app.models.transaction import Transaction
from app.models.transaction_item import TransactionItem

__all__ = [
    'AppUser',
    'Category', 'Product', 'Stock',
    'StockMovement', 'MovementType', 'MovementReason',
    'Transaction', 'TransactionItem',
]
