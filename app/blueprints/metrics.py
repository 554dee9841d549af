"""
Prometheus metrics for the stock API.

/metrics serves HTTP request metrics, sale outcomes and a low-stock gauge
refreshed from the ledger at scrape time. Keep it on the internal network.
"""
import logging
import os
import time
from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess, REGISTRY
from sqlalchemy import func
from app.database import get_session
from app.models import Product, Stock

logger = logging.getLogger(__name__)

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers write to PROMETHEUS_MULTIPROC_DIR and are merged per scrape
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

http_requests_total = Counter(
    'http_requests_total',
    'HTTP requests by endpoint and status',
    ['method', 'endpoint', 'http_status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

http_requests_in_flight = Gauge(
    'http_requests_in_flight',
    'Requests currently being served',
    multiprocess_mode='livesum'
)

sales_recorded_total = Counter(
    'pos_sales_recorded_total',
    'Sales committed through POST /api/transactions'
)

sale_rejections_total = Counter(
    'pos_sale_rejections_total',
    'Sales rejected before commit',
    ['reason']
)

sale_lines = Histogram(
    'pos_sale_lines',
    'Line items per committed sale',
    buckets=(1, 2, 3, 5, 10, 20, 50)
)

low_stock_products = Gauge(
    'pos_low_stock_products',
    'Active products at or below their minimum stock',
    multiprocess_mode='mostrecent'
)


def observe_sale(line_count: int):
    sales_recorded_total.inc()
    sale_lines.observe(line_count)


def observe_rejection(reason: str):
    sale_rejections_total.labels(reason=reason).inc()


def _refresh_stock_gauges():
    count = get_session().query(func.count(Stock.id)).join(
        Product, Product.id == Stock.product_id
    ).filter(
        Stock.current_stock <= Stock.min_stock,
        Product.is_active == True  # noqa: E712
    ).scalar()
    low_stock_products.set(count or 0)


def setup_metrics_instrumentation(app):
    """Time every request and count it by endpoint and status."""

    @app.before_request
    def start_request_timer():
        g._metrics_started = time.time()
        http_requests_in_flight.inc()

    @app.after_request
    def observe_request(response):
        started = g.pop('_metrics_started', None)
        if started is None:
            return response
        try:
            endpoint = request.endpoint or 'unknown'
            http_request_duration_seconds.labels(
                method=request.method, endpoint=endpoint
            ).observe(time.time() - started)
            http_requests_total.labels(
                method=request.method, endpoint=endpoint, http_status=response.status_code
            ).inc()
            http_requests_in_flight.dec()
        except Exception as e:
            app.logger.warning(f"Failed to record metrics: {e}")
        return response


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus text exposition."""
    try:
        _refresh_stock_gauges()
    except Exception as e:
        # HTTP metrics are still served when the ledger is unreachable
        logger.warning(f"Could not refresh stock gauges: {e}")

    if MULTIPROCESS_MODE:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        data = generate_latest(registry)
    else:
        data = generate_latest(REGISTRY)

    return Response(data, mimetype=CONTENT_TYPE_LATEST)
