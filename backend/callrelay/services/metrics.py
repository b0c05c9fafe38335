"""Prometheus metrics for the signaling relay.

Metrics are exposed via HTTP on a separate port (METRICS_PORT) when
METRICS_ENABLED is set.

Metrics exported:
- signaling_messages_total: Counter of inbound messages by type
- signaling_delivery_failures_total: Counter of undeliverable outbound events by type
- signaling_calls_total: Counter of finished calls by outcome
- signaling_active_calls: Gauge of live calls
- signaling_connected_clients: Gauge of registered identities

Usage:
    from callrelay.services.metrics import start_metrics_server, messages_received

    start_metrics_server(port=8001)
    messages_received.labels(type='offer').inc()
"""

from prometheus_client import Counter, Gauge, start_http_server
import logging

logger = logging.getLogger(__name__)

messages_received = Counter(
    'signaling_messages_total',
    'Inbound signaling messages',
    labelnames=['type']
)

delivery_failures = Counter(
    'signaling_delivery_failures_total',
    'Outbound events that could not be delivered',
    labelnames=['type']
)

calls_finished = Counter(
    'signaling_calls_total',
    'Calls removed from the table',
    labelnames=['outcome']  # outcome: rejected, ended, disconnected, failed, no_answer
)

active_calls_gauge = Gauge(
    'signaling_active_calls',
    'Number of live calls'
)

connected_clients_gauge = Gauge(
    'signaling_connected_clients',
    'Number of registered identities'
)


def start_metrics_server(port: int = 8001):
    """Start Prometheus metrics HTTP server."""
    try:
        start_http_server(port)
        logger.info(f"✅ Metrics server started on port {port}")
    except Exception as e:
        logger.error(f"❌ Failed to start metrics server: {e}")
