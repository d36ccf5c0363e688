"""Persistence layer (Flask-SQLAlchemy models)."""
