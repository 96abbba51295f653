"""
Metrics instrumentation for observability.
Collected in the default Prometheus registry; render_metrics() exposes them.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST

# Workflow metrics
workflow_actions = Counter(
    'event_request_actions_total',
    'Event request workflow actions',
    ['action', 'result']  # create/accept/reject/select/list, success/failure/refused
)

validation_failures = Counter(
    'event_request_validation_failures_total',
    'Client-side validation failures per form field',
    ['field']
)

# Backend metrics
backend_latency = Histogram(
    'backend_request_latency_seconds',
    'Backend REST request latency',
    ['method'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

backend_errors = Counter(
    'backend_request_errors_total',
    'Backend REST requests that failed',
    ['kind']  # status, transport, decode
)

# Relay metrics
relay_reconnect_attempts = Counter(
    'relay_reconnect_attempts_total',
    'Push channel reconnection attempts'
)

relay_connected = Gauge(
    'relay_connected',
    'Push channel state (1=connected, 0=not connected)'
)

notification_send_failures = Counter(
    'notification_send_failures_total',
    'Push notifications that could not be sent',
    ['event']
)


def render_metrics() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST

# Convenience functions for instrumentation
def record_action(action: str, result: str):
    """Record workflow action. Result: success, failure, refused"""
    workflow_actions.labels(action=action, result=result).inc()

def record_validation_failure(field: str):
    validation_failures.labels(field=field).inc()

def record_backend_error(kind: str):
    """Record backend failure. Kind: status, transport, decode"""
    backend_errors.labels(kind=kind).inc()
