"""API banner and health check."""
from datetime import datetime
from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from app.database import get_session

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    return jsonify({
        'message': 'Stock Management API',
        'version': '1.0.0',
        'environment': current_app.config.get('ENV', 'development')
    })


@main_bp.route('/health')
def health():
    """
    Liveness plus a round trip to the database.

    Returns:
        200: {'status': 'OK', 'database': 'connected'}
        503: database unreachable
    """
    try:
        get_session().execute(text('SELECT 1')).scalar()
    except SQLAlchemyError as e:
        get_session().rollback()
        current_app.logger.error(f"Health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e)
        }), 503

    return jsonify({
        'status': 'OK',
        'database': 'connected',
        'timestamp': datetime.now().isoformat()
    })
