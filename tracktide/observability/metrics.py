from __future__ import annotations

from flask import Blueprint, Response
from prometheus_client import Counter, generate_latest

metrics_blueprint = Blueprint("metrics_bp", __name__)

CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"

SEARCH_REQUESTS = Counter(
    "tracktide_search_requests_total",
    "Total number of catalog searches served by the API.",
)
CATALOG_FAILURES = Counter(
    "tracktide_catalog_failures_total",
    "Total number of failed catalog lookups.",
    ["operation"],
)
AUTH_FAILURES = Counter(
    "tracktide_auth_failures_total",
    "Requests rejected for a missing or invalid bearer token.",
)
FAVORITES_ADDED = Counter(
    "tracktide_favorites_added_total",
    "Total number of songs added to favorites.",
)
PLAYS_RECORDED = Counter(
    "tracktide_plays_recorded_total",
    "Total number of play history writes.",
    ["outcome"],
)


def record_search() -> None:
    SEARCH_REQUESTS.inc()


def record_catalog_failure(operation: str) -> None:
    CATALOG_FAILURES.labels(operation=operation).inc()


def record_auth_failure() -> None:
    AUTH_FAILURES.inc()


def record_favorite_added() -> None:
    FAVORITES_ADDED.inc()


def record_play(created: bool) -> None:
    PLAYS_RECORDED.labels(outcome="created" if created else "updated").inc()


@metrics_blueprint.route("/metrics")
def metrics_endpoint() -> Response:
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
