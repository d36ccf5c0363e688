#!/usr/bin/env python
"""Authentication utilities and Flask-Login integration (bearer tokens)."""

from __future__ import annotations

from flask import jsonify
from flask_login import LoginManager

from tracktide.observability.metrics import record_auth_failure

login_manager = LoginManager()
login_manager.login_message = None


def init_auth(app):
    """Attach Flask-Login to the Flask app and register the auth blueprint."""
    from tracktide.auth.tokens import bearer_token, verify_token
    from tracktide.database.db_manager import User, db
    from tracktide.interfaces.http.routes.auth import auth_bp

    login_manager.init_app(app)

    @login_manager.request_loader
    def load_user_from_request(request) -> User | None:
        token = bearer_token(request.headers.get("Authorization"))
        if token is None:
            return None
        user_id = verify_token(token)
        if user_id is None:
            return None
        return db.session.get(User, user_id)

    @login_manager.unauthorized_handler
    def _unauthorized():
        record_auth_failure()
        return jsonify({"error": "Authentication required", "code": "authentication_required"}), 401

    app.register_blueprint(auth_bp)

    return login_manager


__all__ = ["login_manager", "init_auth"]
