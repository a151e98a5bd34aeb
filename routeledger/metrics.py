"""
Prometheus metrics for routeledger.

Metrics live on a dedicated registry so embedding applications and tests
never collide with the global default registry.

Environment Variables:
    ROUTELEDGER_METRICS_ENABLED: Start the metrics server (true/false) - default: false
    ROUTELEDGER_METRICS_PORT: HTTP port for /metrics endpoint - default: 9108

Usage:
    from routeledger.metrics import start_metrics_server, track_route

    start_metrics_server(enabled=True, port=9108)
    track_route("NoAdmissiblePath", "volumeThreshold")
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

REGISTRY = CollectorRegistry(auto_describe=True)

# Routing outcomes (labels: outcome, reason)
ROUTES_TOTAL = Counter(
    "routeledger_routes_total",
    "Total number of routing calls by outcome",
    labelnames=["outcome", "reason"],
    registry=REGISTRY,
)

# Routing duration (select + plan + append)
ROUTE_DURATION = Histogram(
    "routeledger_route_duration_seconds",
    "Duration of routing calls in seconds",
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
    registry=REGISTRY,
)

# Ledger appends (labels: kind)
LEDGER_APPENDS_TOTAL = Counter(
    "routeledger_ledger_appends_total",
    "Total number of entries appended to the integrity ledger",
    labelnames=["kind"],
    registry=REGISTRY,
)

# Chain verification failures
INTEGRITY_VIOLATIONS_TOTAL = Counter(
    "routeledger_integrity_violations_total",
    "Total number of hash chain verification failures",
    registry=REGISTRY,
)


def start_metrics_server(enabled: Optional[bool] = None, port: Optional[int] = None) -> bool:
    """
    Start Prometheus metrics HTTP server in a background thread.

    Args:
        enabled: Start the server (default from ROUTELEDGER_METRICS_ENABLED)
        port: HTTP port (default from ROUTELEDGER_METRICS_PORT)

    Returns:
        True if the server was started
    """
    if enabled is None:
        enabled = os.getenv("ROUTELEDGER_METRICS_ENABLED", "false").lower() == "true"
    if not enabled:
        logger.info("Metrics server disabled")
        return False
    if port is None:
        port = int(os.getenv("ROUTELEDGER_METRICS_PORT", "9108"))

    try:
        start_http_server(port, addr="0.0.0.0", registry=REGISTRY)
    except OSError as e:
        logger.error("Failed to start metrics server on port %d: %s", port, e)
        return False
    logger.info("Metrics server started on http://0.0.0.0:%d/metrics", port)
    return True


@contextmanager
def track_route_duration() -> Generator[None, None, None]:
    with ROUTE_DURATION.time():
        yield


def track_route(outcome: str, reason: Optional[str] = None) -> None:
    """
    Count a routing call.

    Args:
        outcome: "completed" or the routing error code
        reason: First failing constraint name, if any
    """
    ROUTES_TOTAL.labels(outcome=outcome, reason=reason or "").inc()


def track_append(kind: str) -> None:
    LEDGER_APPENDS_TOTAL.labels(kind=kind).inc()


def track_integrity_violation() -> None:
    INTEGRITY_VIOLATIONS_TOTAL.inc()
