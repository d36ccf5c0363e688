"""Play history: one row per song, repeat plays bump the timestamp."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from tracktide.database.db_manager import PlayHistory, db, utcnow
from tracktide.interfaces.http.helpers import json_body
from tracktide.models.dto import SongPayload, parse_payload
from tracktide.observability.metrics import record_play

logger = logging.getLogger(__name__)

history_bp = Blueprint('history_bp', __name__, url_prefix='/api/history')


def _touch_existing(user_id: int, song_id: str):
    record = PlayHistory.query.filter_by(user_id=user_id, song_id=song_id).first()
    if record is not None:
        record.played_at = utcnow()
        db.session.commit()
    return record


@history_bp.route('', methods=['GET'])
@login_required
def list_play_history():
    limit = int(current_app.config.get('PLAY_HISTORY_LIMIT', 20))
    records = (
        PlayHistory.query.filter_by(user_id=current_user.id)
        .order_by(PlayHistory.played_at.desc(), PlayHistory.id.desc())
        .limit(limit)
        .all()
    )
    return jsonify({'playHistory': [record.to_dict() for record in records]}), 200


@history_bp.route('', methods=['POST'])
@login_required
def record_play_history():
    song = parse_payload(SongPayload, json_body())

    record = _touch_existing(current_user.id, song.song_id)
    if record is None:
        record = PlayHistory(user_id=current_user.id)
        record.apply_song(song)
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            record = _touch_existing(current_user.id, song.song_id)
        else:
            record_play(created=True)
            logger.info("Song added to play history: %s by %s", song.song_title, song.artist_name)
            return (
                jsonify(
                    {
                        'message': 'Song added to play history successfully',
                        'playRecord': record.to_dict(),
                    }
                ),
                201,
            )

    record_play(created=False)
    return (
        jsonify(
            {
                'message': 'Song updated in play history successfully',
                'playRecord': record.to_dict(),
            }
        ),
        200,
    )


__all__ = ['history_bp']
