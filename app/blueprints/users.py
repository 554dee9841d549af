"""Users blueprint - manage cashiers and administrators."""
import re
from flask import Blueprint, request, jsonify
from sqlalchemy.exc import IntegrityError
from app.database import get_session
from app.models import AppUser
from app.middleware import require_role
from app.exceptions import ValidationError

users_bp = Blueprint('users', __name__, url_prefix='/api/users')

ROLES = ('admin', 'cashier')


def is_valid_email(email: str) -> bool:
    """Validate email format."""
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return re.match(pattern, email) is not None


@users_bp.route('', methods=['GET'])
@users_bp.route('/', methods=['GET'])
@require_role('admin')
def list_users():
    users = get_session().query(AppUser).order_by(AppUser.id).all()
    return jsonify({'users': [u.to_dict() for u in users]})


@users_bp.route('', methods=['POST'])
@users_bp.route('/', methods=['POST'])
@require_role('admin')
def create_user():
    """Create a user (admin only)."""
    db_session = get_session()
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    role = data.get('role', 'cashier')

    if not email or not is_valid_email(email):
        raise ValidationError('A valid email is required')
    if len(password) < 6:
        raise ValidationError('Password must be at least 6 characters')
    if role not in ROLES:
        raise ValidationError(f'Role must be one of: {", ".join(ROLES)}')

    user = AppUser(email=email, full_name=data.get('full_name'), role=role, active=True)
    user.set_password(password)
    db_session.add(user)
    try:
        db_session.commit()
    except IntegrityError:
        db_session.rollback()
        raise ValidationError(f'User {email} already exists')

    return jsonify({'message': 'User created successfully', 'user': user.to_dict()}), 201
