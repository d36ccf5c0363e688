"""Artist follows and the popular-artist shelf."""

from __future__ import annotations

import logging
import random

from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from tracktide.database.db_manager import UserFollow, db
from tracktide.errors import CatalogError, ConflictError, NotFoundError
from tracktide.interfaces.http.helpers import get_catalog, query_limit
from tracktide.observability.metrics import record_catalog_failure

logger = logging.getLogger(__name__)

artist_bp = Blueprint('artist_bp', __name__, url_prefix='/api/artists')

ALREADY_FOLLOWING = 'Already following this artist'


def _artist_details(artist_id):
    try:
        return dict(get_catalog().get_artist(artist_id))
    except CatalogError as exc:
        record_catalog_failure('artist')
        logger.error("Error fetching artist %s: %s", artist_id, exc)
        return None


@artist_bp.route('/following', methods=['GET'])
@login_required
def following_artists():
    follows = (
        UserFollow.query.filter_by(follower_id=current_user.id, followed_type='artist')
        .order_by(UserFollow.followed_at.desc(), UserFollow.id.desc())
        .all()
    )
    artists = []
    for follow in follows:
        artist = _artist_details(follow.followed_id)
        if artist is None:
            continue
        artist['isFollowing'] = True
        artist['followedAt'] = follow.to_dict()['followedAt']
        artists.append(artist)
    return jsonify({'artists': artists}), 200


@artist_bp.route('/popular', methods=['GET'])
def popular_artists():
    pool = list(current_app.config.get('POPULAR_ARTIST_IDS') or [])
    limit = query_limit('limit', int(current_app.config.get('POPULAR_ARTIST_LIMIT', 20)), len(pool) or 1)
    selected = random.sample(pool, min(limit, len(pool)))

    following = set()
    if current_user.is_authenticated:
        following = UserFollow.followed_ids(current_user.id, 'artist')

    artists = []
    for artist_id in selected:
        artist = _artist_details(artist_id)
        if artist is None:
            continue
        artist['isFollowing'] = str(artist_id) in following
        artists.append(artist)
    return jsonify({'artists': artists}), 200


@artist_bp.route('/<artist_id>/follow', methods=['POST'])
@login_required
def follow_artist(artist_id: str):
    existing = UserFollow.query.filter_by(
        follower_id=current_user.id,
        followed_type='artist',
        followed_id=artist_id,
    ).first()
    if existing is not None:
        raise ConflictError(ALREADY_FOLLOWING)

    follow = UserFollow(follower_id=current_user.id, followed_type='artist', followed_id=artist_id)
    db.session.add(follow)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(ALREADY_FOLLOWING)

    logger.info("User %s started following artist %s", current_user.id, artist_id)
    return jsonify({'message': 'Artist followed successfully', 'follow': follow.to_dict()}), 201


@artist_bp.route('/<artist_id>/follow', methods=['DELETE'])
@login_required
def unfollow_artist(artist_id: str):
    follow = UserFollow.query.filter_by(
        follower_id=current_user.id,
        followed_type='artist',
        followed_id=artist_id,
    ).first()
    if follow is None:
        raise NotFoundError('Not following this artist')

    removed = follow.to_dict()
    db.session.delete(follow)
    db.session.commit()
    return jsonify({'message': 'Artist unfollowed successfully', 'removedFollow': removed}), 200


__all__ = ['artist_bp']
