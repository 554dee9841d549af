"""
HTTP tests for /api/stock.
"""

from app.models import Stock, StockMovement, MovementType, MovementReason


def test_stock_in_raises_level_and_logs_movement(authenticated_client, session, product, user, stock_level):
    response = authenticated_client.post('/api/stock/in', json={
        'product_id': product,
        'quantity': 5,
        'notes': 'Supplier delivery'
    })

    assert response.status_code == 200
    body = response.get_json()
    assert body['message'] == 'Stock added successfully'
    assert stock_level(product) == 15

    movement = session.get(StockMovement, body['movementId'])
    assert movement.movement_type == MovementType.IN
    assert movement.reference_type == MovementReason.MANUAL
    assert movement.quantity == 5
    assert movement.user_id == user
    assert movement.notes == 'Supplier delivery'

    entry = session.query(Stock).filter_by(product_id=product).one()
    assert entry.stock_in == 15
    assert entry.stock_out == 0


def test_stock_in_rejects_bad_quantity(authenticated_client, product, stock_level):
    for quantity in (0, -3, 'lots', None, True):
        response = authenticated_client.post('/api/stock/in', json={'product_id': product, 'quantity': quantity})
        assert response.status_code == 400, quantity

    assert stock_level(product) == 10


def test_stock_in_unknown_product(authenticated_client, product):
    response = authenticated_client.post('/api/stock/in', json={'product_id': 404, 'quantity': 1})

    assert response.status_code == 404


def test_stock_in_requires_user(client, product, stock_level):
    response = client.post('/api/stock/in', json={'product_id': product, 'quantity': 1})

    assert response.status_code == 401
    assert stock_level(product) == 10


def test_list_stock_lowest_first(client, make_product):
    full = make_product(name='Full', stock=20)
    low = make_product(name='Low', stock=3)

    response = client.get('/api/stock')

    assert response.status_code == 200
    rows = response.get_json()['stock']
    assert [r['product_id'] for r in rows] == [low, full]
    assert rows[0]['is_low'] is True
    assert rows[1]['is_low'] is False


def test_list_stock_low_only(client, make_product):
    make_product(name='Full', stock=20)
    low = make_product(name='Low', stock=5, min_stock=5)

    rows = client.get('/api/stock?low_stock=true').get_json()['stock']

    assert [r['product_id'] for r in rows] == [low]


def test_movements_newest_first(authenticated_client, make_product):
    first = make_product(name='First', stock=4)
    second = make_product(name='Second', stock=6)
    authenticated_client.post('/api/transactions', json={'items': [{'product_id': first, 'quantity': 1}]})

    movements = authenticated_client.get('/api/stock/movements').get_json()['movements']

    assert [(m['product_id'], m['movement_type'], m['quantity']) for m in movements] == [
        (first, 'out', 1),
        (second, 'in', 6),
        (first, 'in', 4),
    ]
    assert movements[0]['reference_type'] == 'transaction'


def test_movements_filtered_by_product(client, make_product):
    make_product(name='First', stock=4)
    second = make_product(name='Second', stock=6)

    movements = client.get(f'/api/stock/movements?product_id={second}').get_json()['movements']

    assert len(movements) == 1
    assert movements[0]['product_id'] == second


def test_reconcile_reports_consistent_ledger(authenticated_client, product):
    authenticated_client.post('/api/transactions', json={'items': [{'product_id': product, 'quantity': 3}]})

    body = authenticated_client.get('/api/stock/reconcile').get_json()

    assert body == {'consistent': True, 'mismatches': []}


def test_reconcile_flags_tampered_row(client, session, product):
    entry = session.query(Stock).filter_by(product_id=product).one()
    entry.stock_in = 12
    entry.current_stock = 12
    session.commit()

    body = client.get('/api/stock/reconcile').get_json()

    assert body['consistent'] is False
    assert body['mismatches'] == [{
        'product_id': product,
        'current_stock': 12,
        'expected_from_movements': 10,
        'stock_in': 12,
        'stock_out': 0,
    }]
