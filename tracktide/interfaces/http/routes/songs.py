"""Catalog search; authenticated callers also get their query recorded."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from tracktide.database.db_manager import SearchHistory, db, utcnow
from tracktide.errors import CatalogError, ValidationError
from tracktide.interfaces.http.helpers import get_catalog
from tracktide.observability.metrics import record_catalog_failure, record_search

logger = logging.getLogger(__name__)

songs_bp = Blueprint('songs_bp', __name__, url_prefix='/api/songs')


def remember_search(user_id: int, query: str) -> SearchHistory:
    """Upsert a search entry: repeating a query moves it back to the top."""
    entry = SearchHistory.query.filter_by(user_id=user_id, search_query=query).first()
    if entry is None:
        entry = SearchHistory(user_id=user_id, search_query=query)
        db.session.add(entry)
    else:
        entry.timestamp = utcnow()
    db.session.commit()
    return entry


@songs_bp.route('/search', methods=['GET'])
def search_songs():
    query = (request.args.get('q') or '').strip()
    if not query:
        raise ValidationError("Query parameter 'q' is required")

    record_search()
    try:
        songs, total = get_catalog().search(query)
    except CatalogError:
        record_catalog_failure('search')
        logger.exception("Catalog search failed for %r", query)
        raise

    if current_user.is_authenticated:
        try:
            remember_search(current_user.id, query)
        except SQLAlchemyError:
            # History is best effort; the search result still goes out
            db.session.rollback()
            logger.exception("Could not save search history for user %s", current_user.id)

    return jsonify({'songs': songs, 'total': total, 'query': query}), 200


__all__ = ['songs_bp', 'remember_search']
