"""Liked songs for the signed-in user."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from tracktide.database.db_manager import FAVORITE_CONTEXTS, FavoriteSong, db
from tracktide.errors import ConflictError, NotFoundError, ValidationError
from tracktide.interfaces.http.helpers import json_body
from tracktide.models.dto import FavoritePayload, parse_payload
from tracktide.observability.metrics import record_favorite_added

logger = logging.getLogger(__name__)

favorite_bp = Blueprint('favorite_bp', __name__, url_prefix='/api/favorites')

ALREADY_FAVORITE = 'Song is already in favorites'


@favorite_bp.route('', methods=['GET'])
@login_required
def list_favorites():
    favorites = (
        FavoriteSong.query.filter_by(user_id=current_user.id)
        .order_by(FavoriteSong.liked_at.desc(), FavoriteSong.id.desc())
        .all()
    )
    return jsonify({'favorites': [fav.to_dict() for fav in favorites]}), 200


@favorite_bp.route('', methods=['POST'])
@login_required
def add_favorite():
    payload = parse_payload(FavoritePayload, json_body())
    if payload.context not in FAVORITE_CONTEXTS:
        raise ValidationError(
            'Invalid favorite context',
            details={'allowed': list(FAVORITE_CONTEXTS)},
        )

    existing = FavoriteSong.query.filter_by(
        user_id=current_user.id,
        song_id=payload.song_id,
    ).first()
    if existing is not None:
        raise ConflictError(ALREADY_FAVORITE)

    favorite = FavoriteSong(user_id=current_user.id, context=payload.context)
    favorite.apply_song(payload)
    db.session.add(favorite)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent add of the same song
        db.session.rollback()
        raise ConflictError(ALREADY_FAVORITE)

    record_favorite_added()
    logger.info("Song %s added to favorites of user %s", favorite.song_id, current_user.id)
    return (
        jsonify(
            {
                'message': 'Song added to favorites successfully',
                'favorite': favorite.to_dict(),
            }
        ),
        201,
    )


@favorite_bp.route('/<song_id>', methods=['DELETE'])
@login_required
def remove_favorite(song_id: str):
    favorite = FavoriteSong.query.filter_by(user_id=current_user.id, song_id=song_id).first()
    if favorite is None:
        raise NotFoundError('Song not found in favorites')

    removed = favorite.to_dict()
    db.session.delete(favorite)
    db.session.commit()
    return (
        jsonify(
            {
                'message': 'Song removed from favorites successfully',
                'removedSong': removed,
            }
        ),
        200,
    )


__all__ = ['favorite_bp']
