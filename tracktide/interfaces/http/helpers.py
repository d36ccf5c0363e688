"""Small request helpers shared by the route modules."""

from __future__ import annotations

from flask import current_app, request

from tracktide.errors import TrackTideError


def json_body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def get_catalog():
    catalog = current_app.extensions.get("catalog")
    if catalog is None:
        raise TrackTideError("Music catalog is not configured")
    return catalog


def query_limit(name: str, default: int, maximum: int) -> int:
    value = request.args.get(name, type=int)
    if value is None or value < 1:
        return default
    return min(value, maximum)
