#!/usr/bin/env python
"""Authentication API endpoints: signup, login and the current profile."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required

from tracktide.auth.tokens import issue_token
from tracktide.database.db_manager import User, db, utcnow
from tracktide.errors import AuthError, ValidationError
from tracktide.interfaces.http.helpers import json_body

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(message: str, user: User) -> dict:
    return {
        "message": message,
        "token": issue_token(user.id),
        "user": user.to_dict(),
    }


@auth_bp.route("/signup", methods=["POST"])
def signup():
    data = json_body()
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not name or not email or not password:
        raise ValidationError("All fields are required")

    min_length = int(current_app.config.get("MIN_PASSWORD_LENGTH", 6))
    if len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters")

    if User.query.filter_by(email=email).first() is not None:
        raise ValidationError("User already exists")

    user = User(name=name, email=email)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    logger.info("New user registered: %s", email)
    return jsonify(_session_payload("User registered successfully", user)), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not email or not password:
        raise ValidationError("Email and password are required")

    user = User.query.filter_by(email=email).first()
    if user is None or not user.check_password(password):
        raise AuthError("Invalid credentials")

    user.last_login_at = utcnow()
    db.session.commit()

    logger.info("User logged in: %s", email)
    return jsonify(_session_payload("Login successful", user)), 200


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify({"user": current_user.to_dict()}), 200


__all__ = ["auth_bp"]
