"""
Authentication blueprint.
Establishes the acting user in the Flask session.
"""
from flask import Blueprint, request, session, jsonify, g
from app.database import get_session
from app.models import AppUser
from app.middleware import require_user
from app.exceptions import ValidationError, UnauthorizedError
import logging

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """Log in with email and password."""
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        raise ValidationError('Email and password are required')

    user = get_session().query(AppUser).filter_by(email=email, active=True).first()
    if not user or not user.check_password(password):
        logger.warning(f"Failed login attempt for {email}")
        raise UnauthorizedError('Invalid credentials')

    session.clear()
    session['user_id'] = user.id
    session.permanent = True
    logger.info(f"User logged in: {email}")
    return jsonify({'message': 'Login successful', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'message': 'Logout successful'})


@auth_bp.route('/me', methods=['GET'])
@require_user
def me():
    return jsonify({'user': g.user.to_dict()})
