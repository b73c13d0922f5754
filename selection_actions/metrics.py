# SPDX-License-Identifier: Apache-2.0
"""Prometheus metrics for selection action dispatch."""
from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

ACTION_EXECUTIONS = Counter(
    "selection_actions_executions_total",
    "Action dispatches by kind, batch mode and outcome",
    labelnames=("kind", "mode", "outcome"),
)

ITEM_RESULTS = Counter(
    "selection_actions_item_results_total",
    "Per-row results of individual dispatches",
    labelnames=("kind", "outcome"),
)

WEBHOOK_REQUESTS = Counter(
    "selection_actions_webhook_requests_total",
    "Outbound webhook requests by method and outcome",
    labelnames=("method", "outcome"),
)

WEBHOOK_LATENCY = Histogram(
    "selection_actions_webhook_latency_ms",
    "Webhook request latency including rate limiter wait (milliseconds)",
    labelnames=("method",),
    buckets=(5, 10, 20, 50, 100, 200, 500, 1000, 2000, 5000),
)

INTERPOLATION_ERRORS = Counter(
    "selection_actions_interpolation_errors_total",
    "Soft errors reported while interpolating templates",
)

RATE_LIMIT_WAIT = Histogram(
    "selection_actions_rate_limit_wait_ms",
    "Time spent waiting for the webhook rate limiter (milliseconds)",
    buckets=(1, 5, 10, 50, 100, 250, 500, 1000, 5000),
)

ACTIVE_REQUESTS = Gauge(
    "selection_actions_active_requests",
    "Webhook requests currently holding a rate limiter slot",
)
