import pytest
import os
import tempfile
import uuid

# Point the app at a throwaway SQLite file before config.Config is evaluated
_TEST_DB_DIR = tempfile.mkdtemp(prefix='stock-tests-')
os.environ.setdefault('DATABASE_URL', f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.sqlite3')}")
os.environ.setdefault('FLASK_DEBUG', '0')

from app import create_app
from app.database import get_session, create_tables, drop_tables
from app.models import AppUser, Category, Product, Stock
from app.services import stock_service


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.Config')
    app.config['TESTING'] = True
    app.config['POS_DEFAULT_USER_ID'] = None
    return app


@pytest.fixture(scope='function', autouse=True)
def database(app):
    """Fresh tables for every test."""
    create_tables()
    yield
    get_session().remove()
    drop_tables()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session for the test thread."""
    session = get_session()
    yield session
    session.rollback()
    session.remove()


@pytest.fixture(scope='function')
def user(session):
    """Create a cashier; returns its id."""
    suffix = str(uuid.uuid4())[:8]
    user = AppUser(
        email=f'cashier-{suffix}@test.com',
        full_name='Cashier One',
        role='cashier',
        active=True
    )
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user.id


@pytest.fixture(scope='function')
def admin_user(session):
    """Create an admin; returns its id."""
    suffix = str(uuid.uuid4())[:8]
    user = AppUser(
        email=f'admin-{suffix}@test.com',
        full_name='Admin',
        role='admin',
        active=True
    )
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user.id


@pytest.fixture(scope='function')
def category(session):
    """Create test category; returns its id."""
    category = Category(name='Bakpia Klasik', description='Classic flavours')
    session.add(category)
    session.commit()
    return category.id


@pytest.fixture(scope='function')
def make_product(session, category, user):
    """
    Factory: create an active product with a stock row.

    Initial stock is booked through stock-in so the movement log matches.
    Returns the product id.
    """
    def _make(name='Bakpia Pathok', price=25000, stock=10, min_stock=5, active=True):
        product = Product(
            name=name,
            category_id=category,
            price=price,
            is_active=active
        )
        session.add(product)
        session.flush()
        stock_service.create_entry(session, product.id, min_stock=min_stock)
        session.commit()
        product_id = product.id
        if stock:
            stock_service.receive_stock(session, product_id, stock, acting_user_id=user, notes='Initial stock')
        return product_id
    return _make


@pytest.fixture(scope='function')
def product(make_product):
    """Product 1 with current_stock=10 at 25000."""
    return make_product()


@pytest.fixture(scope='function')
def authenticated_client(client, user):
    """Create authenticated client for the cashier."""
    with client.session_transaction() as sess:
        sess['user_id'] = user
    return client


@pytest.fixture(scope='function')
def admin_client(client, admin_user):
    with client.session_transaction() as sess:
        sess['user_id'] = admin_user
    return client


@pytest.fixture(scope='function')
def stock_level(session):
    """Read a product's ledger quantity bypassing the identity map."""
    def _read(product_id):
        session.expire_all()
        return session.query(Stock).filter_by(product_id=product_id).one().current_stock
    return _read
