"""Recent search queries for the signed-in user."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required

from tracktide.database.db_manager import SearchHistory, db
from tracktide.errors import NotFoundError

search_history_bp = Blueprint('search_history_bp', __name__, url_prefix='/api/search/history')


@search_history_bp.route('', methods=['GET'])
@login_required
def list_search_history():
    limit = int(current_app.config.get('SEARCH_HISTORY_LIMIT', 5))
    entries = (
        SearchHistory.query.filter_by(user_id=current_user.id)
        .order_by(SearchHistory.timestamp.desc(), SearchHistory.id.desc())
        .limit(limit)
        .all()
    )
    return jsonify({'history': [entry.to_dict() for entry in entries]}), 200


@search_history_bp.route('/<int:entry_id>', methods=['DELETE'])
@login_required
def delete_search_history(entry_id: int):
    entry = SearchHistory.query.filter_by(id=entry_id, user_id=current_user.id).first()
    if entry is None:
        raise NotFoundError('Search history item not found')

    db.session.delete(entry)
    db.session.commit()
    return jsonify({'message': 'Search history item deleted successfully'}), 200


__all__ = ['search_history_bp']
