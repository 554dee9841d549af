"""
Report service - read-only sales and stock aggregates.
"""
from datetime import datetime, date, time, timedelta
from typing import Dict, List, Optional, Any, Tuple
from sqlalchemy import func
from sqlalchemy.orm import joinedload
from app.models import Product, Stock, Transaction, TransactionItem


def get_day_range(day: date) -> Tuple[datetime, datetime]:
    """[start, end) datetimes covering one calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def get_dashboard(session, today: Optional[date] = None) -> Dict[str, Any]:
    """Today's sales, low stock count, active products and recent transactions."""
    start, end = get_day_range(today or date.today())

    total_transactions, total_revenue = session.query(
        func.count(Transaction.id),
        func.coalesce(func.sum(Transaction.total_amount), 0)
    ).filter(
        Transaction.transaction_date >= start,
        Transaction.transaction_date < end
    ).one()

    low_stock_count = session.query(func.count(Stock.id)).join(
        Product, Product.id == Stock.product_id
    ).filter(
        Stock.current_stock <= Stock.min_stock,
        Product.is_active == True  # noqa: E712
    ).scalar()

    total_products = session.query(func.count(Product.id)).filter(
        Product.is_active == True  # noqa: E712
    ).scalar()

    recent = session.query(Transaction).options(
        joinedload(Transaction.user)
    ).order_by(
        Transaction.transaction_date.desc(),
        Transaction.id.desc()
    ).limit(5).all()

    return {
        'today_sales': {
            'total_transactions': int(total_transactions or 0),
            'total_revenue': float(total_revenue or 0),
        },
        'low_stock_count': int(low_stock_count or 0),
        'total_products': int(total_products or 0),
        'recent_transactions': [t.to_dict() for t in recent],
    }


def get_sales_report(session, start: date, end: date) -> List[Dict[str, Any]]:
    """Transaction count and revenue per day between start and end (inclusive)."""
    range_start, _ = get_day_range(start)
    _, range_end = get_day_range(end)
    day = func.date(Transaction.transaction_date)

    rows = session.query(
        day.label('date'),
        func.count(Transaction.id),
        func.coalesce(func.sum(Transaction.total_amount), 0)
    ).filter(
        Transaction.transaction_date >= range_start,
        Transaction.transaction_date < range_end
    ).group_by(day).order_by(day).all()

    return [
        {
            'date': str(row_date),
            'total_transactions': int(count),
            'total_revenue': float(revenue),
        }
        for row_date, count, revenue in rows
    ]


def get_bestsellers(
    session,
    start: Optional[date] = None,
    end: Optional[date] = None,
    limit: int = 10
) -> List[Dict[str, Any]]:
    """Products ranked by units sold."""
    total_sold = func.sum(TransactionItem.quantity)
    query = session.query(
        Product.id,
        Product.name,
        total_sold.label('total_sold'),
        func.sum(TransactionItem.subtotal).label('total_revenue')
    ).join(
        TransactionItem, TransactionItem.product_id == Product.id
    ).join(
        Transaction, Transaction.id == TransactionItem.transaction_id
    )

    if start and end:
        range_start, _ = get_day_range(start)
        _, range_end = get_day_range(end)
        query = query.filter(
            Transaction.transaction_date >= range_start,
            Transaction.transaction_date < range_end
        )

    rows = query.group_by(Product.id, Product.name).order_by(
        total_sold.desc(), Product.id.asc()
    ).limit(limit).all()

    return [
        {
            'product_id': product_id,
            'product_name': name,
            'total_sold': int(sold),
            'total_revenue': float(revenue),
        }
        for product_id, name, sold, revenue in rows
    ]
