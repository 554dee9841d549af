"""
Health check and metrics endpoints.
"""


def test_index(client):
    response = client.get('/')

    assert response.status_code == 200
    assert response.get_json()['message'] == 'Stock Management API'


def test_health_reports_database(client):
    response = client.get('/health')

    assert response.status_code == 200
    body = response.get_json()
    assert body['status'] == 'OK'
    assert body['database'] == 'connected'


def test_metrics_exposes_sale_counters(authenticated_client, product):
    authenticated_client.post('/api/transactions', json={'items': [{'product_id': product, 'quantity': 1}]})
    authenticated_client.post('/api/transactions', json={'items': [{'product_id': product, 'quantity': 99}]})

    response = authenticated_client.get('/metrics')

    assert response.status_code == 200
    text = response.get_data(as_text=True)
    assert 'pos_sales_recorded_total' in text
    assert 'pos_sale_rejections_total{reason="insufficient_stock"}' in text
    assert 'pos_low_stock_products 0.0' in text
    assert 'http_requests_total' in text


def test_unknown_route_is_json(client):
    response = client.get('/no-such-page')

    assert response.status_code == 404
    assert response.get_json() == {'error': 'Not Found'}


def test_cors_headers(client):
    response = client.get('/', headers={'Origin': 'http://pos.local'})

    assert response.headers['Access-Control-Allow-Origin'] == '*'
