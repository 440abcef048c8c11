"""Prometheus metrics for monitoring"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, generate_latest

registry = CollectorRegistry()

request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=registry
)

request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=registry
)

status_transitions = Counter(
    'order_status_transitions_total',
    'Total order status transitions',
    ['from_status', 'to_status'],
    registry=registry
)

quote_entries = Counter(
    'quote_negotiation_entries_total',
    'Total quote negotiation ledger entries',
    ['status', 'author_role'],
    registry=registry
)

notifications_created = Counter(
    'notifications_created_total',
    'Total in-app notifications created',
    ['type'],
    registry=registry
)

email_deliveries = Counter(
    'email_deliveries_total',
    'Total transactional email delivery attempts',
    ['status'],
    registry=registry
)

email_duration = Histogram(
    'email_delivery_duration_seconds',
    'Transactional email delivery duration in seconds',
    ['status'],
    registry=registry
)

rate_limit_exceeded = Counter(
    'rate_limit_exceeded_total',
    'Total rate limit exceeded events',
    registry=registry
)

audit_logs_created = Counter(
    'audit_logs_created_total',
    'Total audit logs created',
    ['action'],
    registry=registry
)

redis_connected = Gauge(
    'redis_connected',
    'Redis connection status (1=connected, 0=disconnected)',
    registry=registry
)

db_connected = Gauge(
    'db_connected',
    'Database connection status (1=connected, 0=disconnected)',
    registry=registry
)


def get_metrics_text() -> str:
    """Generate Prometheus metrics in text format"""
    return generate_latest(registry).decode('utf-8')
