#!/usr/bin/env python
"""Container healthcheck probing the TrackTide health endpoint."""

import os
import sys

import requests


def main() -> int:
    host = os.getenv("HEALTHCHECK_HOST", "127.0.0.1")
    port = os.getenv("PORT", "3001")
    target = f"http://{host}:{port}/api/health"
    try:
        resp = requests.get(target, timeout=5)
    except requests.RequestException:
        return 1
    if resp.status_code != 200:
        return 1
    try:
        payload = resp.json()
    except ValueError:
        return 1
    # A running server with an unreachable database still answers 200
    return 0 if payload.get("database") == "connected" else 1


if __name__ == "__main__":
    sys.exit(main())
