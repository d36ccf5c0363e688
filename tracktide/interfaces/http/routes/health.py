from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, jsonify

from tracktide.database.db_manager import database_ready

health_bp = Blueprint("health_bp", __name__)


@health_bp.route("/api/health")
def health():
    connected = database_ready()
    payload = {
        "status": "healthy",
        "message": "TrackTide backend is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if connected else "disconnected",
    }
    return jsonify(payload), 200
