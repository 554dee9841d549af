"""
Flask CLI commands.
"""

from app.models import AppUser, Stock


def test_init_db(app):
    result = app.test_cli_runner().invoke(args=['init-db'])

    assert result.exit_code == 0
    assert 'Database tables created' in result.output


def test_create_user(app, session):
    result = app.test_cli_runner().invoke(args=[
        'create-user', '--email', 'Owner@Shop.com', '--password', 'secret1',
        '--full-name', 'Shop Owner', '--role', 'admin'
    ])

    assert result.exit_code == 0, result.output
    user = session.query(AppUser).filter_by(email='owner@shop.com').one()
    assert user.role == 'admin'
    assert user.check_password('secret1')


def test_create_user_rejects_short_password(app, session):
    result = app.test_cli_runner().invoke(args=[
        'create-user', '--email', 'a@b.com', '--password', '123'
    ])

    assert result.exit_code == 1
    assert session.query(AppUser).count() == 0


def test_create_user_rejects_duplicate(app, session, user):
    email = session.get(AppUser, user).email

    result = app.test_cli_runner().invoke(args=[
        'create-user', '--email', email, '--password', 'secret1'
    ])

    assert result.exit_code == 1
    assert 'already exists' in result.output


def test_check_stock_clean(app, product):
    result = app.test_cli_runner().invoke(args=['check-stock'])

    assert result.exit_code == 0
    assert 'matches' in result.output


def test_check_stock_reports_mismatch(app, session, product):
    entry = session.query(Stock).filter_by(product_id=product).one()
    entry.stock_out = 2
    entry.current_stock = 8
    session.commit()

    result = app.test_cli_runner().invoke(args=['check-stock', '--product-id', str(product)])

    assert result.exit_code == 1
    assert f'product {product}: current=8 movements=10' in result.output
