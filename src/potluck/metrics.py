"""Prometheus metrics definitions for Potluck."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "potluck_http_requests_total",
    "Total number of HTTP requests processed by the Potluck API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "potluck_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Potluck API",
    ["method", "path"],
)

MERGE_CALLS = Counter(
    "potluck_semantic_merge_calls_total",
    "Semantic merge attempts by outcome",
    ["outcome"],
)

CACHE_LOOKUPS = Counter(
    "potluck_grocery_cache_lookups_total",
    "Grocery cache lookups by result",
    ["result"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "MERGE_CALLS",
    "CACHE_LOOKUPS",
]
