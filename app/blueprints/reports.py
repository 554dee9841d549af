"""Reports blueprint - dashboard and sales aggregates."""
from datetime import date, datetime
from typing import Optional
from flask import Blueprint, request, jsonify
from app.database import get_session
from app.exceptions import ValidationError
from app.services import report_service

reports_bp = Blueprint('reports', __name__, url_prefix='/api/reports')


def _parse_date(value: Optional[str], field: str) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f'{field} must be a date in YYYY-MM-DD format')


@reports_bp.route('/dashboard', methods=['GET'])
def dashboard():
    return jsonify(report_service.get_dashboard(get_session()))


@reports_bp.route('/sales', methods=['GET'])
def sales():
    """Daily sales between start and end (default: today)."""
    start = _parse_date(request.args.get('start'), 'start') or date.today()
    end = _parse_date(request.args.get('end'), 'end') or start
    if end < start:
        raise ValidationError('end must not be before start')

    return jsonify({'sales': report_service.get_sales_report(get_session(), start, end)})


@reports_bp.route('/products/bestseller', methods=['GET'])
def bestsellers():
    start = _parse_date(request.args.get('start'), 'start')
    end = _parse_date(request.args.get('end'), 'end')
    limit = request.args.get('limit', 10, type=int)

    products = report_service.get_bestsellers(get_session(), start=start, end=end, limit=limit)
    return jsonify({'products': products})
