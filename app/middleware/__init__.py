"""Middleware for resolving the acting user of a request."""
import logging
from functools import wraps
from flask import session, g, current_app
from app.database import get_session
from app.models import AppUser
from app.exceptions import UnauthorizedError, ForbiddenError

logger = logging.getLogger(__name__)


def load_acting_user():
    """
    Load the acting user into g (Flask's per-request global).

    The logged-in user from the session wins. Without one, the user named by
    POS_DEFAULT_USER_ID is used when the deployment configures it; otherwise
    g.user stays None and protected routes answer 401.
    """
    g.user = None
    g.user_id = None

    db_session = get_session()
    user_id = session.get('user_id')
    if user_id:
        user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
        if user:
            g.user = user
            g.user_id = user.id
            return
        # Stale or deactivated user: drop it from the session
        session.pop('user_id', None)

    default_user_id = current_app.config.get('POS_DEFAULT_USER_ID')
    if default_user_id:
        user = db_session.query(AppUser).filter_by(id=default_user_id, active=True).first()
        if user:
            g.user = user
            g.user_id = user.id
        else:
            logger.warning(f"POS_DEFAULT_USER_ID={default_user_id} does not match an active user")


def require_user(f):
    """
    Decorator: Require an acting user.

    Raises UnauthorizedError, rendered as a 401 JSON body by the app error handler.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise UnauthorizedError()
        return f(*args, **kwargs)
    return decorated_function


def require_role(*allowed_roles):
    """Decorator: Require the acting user to hold one of the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = g.get('user')
            if user is None:
                raise UnauthorizedError()
            if user.role not in allowed_roles:
                raise ForbiddenError()
            return f(*args, **kwargs)
        return decorated_function
    return decorator
