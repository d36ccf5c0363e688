"""Playlist CRUD routes with ownership enforcement."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from tracktide.database.db_manager import Playlist, PlaylistSong, db
from tracktide.errors import ConflictError, NotFoundError, ValidationError
from tracktide.interfaces.http.helpers import json_body
from tracktide.models.dto import PlaylistPayload, SongPayload, parse_payload

logger = logging.getLogger(__name__)

playlist_bp = Blueprint('playlist_bp', __name__, url_prefix='/api/playlists')

NAME_REQUIRED = 'Playlist name is required'
ALREADY_IN_PLAYLIST = 'Song is already in this playlist'


def _owned_playlist(playlist_id: int) -> Playlist:
    playlist = Playlist.query.filter_by(id=playlist_id, owner_id=current_user.id).first()
    if playlist is None:
        raise NotFoundError('Playlist not found')
    return playlist


def _playlist_fields() -> PlaylistPayload:
    return parse_payload(PlaylistPayload, json_body(), message='Invalid playlist details')


@playlist_bp.route('', methods=['GET'])
@login_required
def list_playlists():
    playlists = (
        Playlist.query.filter_by(owner_id=current_user.id)
        .order_by(Playlist.updated_at.desc(), Playlist.id.desc())
        .all()
    )
    return (
        jsonify({'playlists': [p.to_dict(include_song_summary=True) for p in playlists]}),
        200,
    )


@playlist_bp.route('', methods=['POST'])
@login_required
def create_playlist():
    fields = _playlist_fields()
    name = (fields.name or '').strip()
    if not name:
        raise ValidationError(NAME_REQUIRED)

    playlist = Playlist(
        owner_id=current_user.id,
        name=name,
        description=(fields.description or '').strip(),
        is_public=bool(fields.is_public),
    )
    db.session.add(playlist)
    db.session.commit()

    logger.info("Playlist created: %s by user %s", name, current_user.id)
    return (
        jsonify({'message': 'Playlist created successfully', 'playlist': playlist.to_dict()}),
        201,
    )


@playlist_bp.route('/<int:playlist_id>', methods=['GET'])
@login_required
def get_playlist(playlist_id: int):
    playlist = _owned_playlist(playlist_id)
    return (
        jsonify(
            {
                'playlist': playlist.to_dict(),
                'songs': [entry.to_dict() for entry in playlist.entries],
            }
        ),
        200,
    )


@playlist_bp.route('/<int:playlist_id>', methods=['PUT'])
@login_required
def update_playlist(playlist_id: int):
    playlist = _owned_playlist(playlist_id)
    fields = _playlist_fields()
    provided = fields.model_fields_set

    if 'name' in provided:
        name = (fields.name or '').strip()
        if not name:
            raise ValidationError(NAME_REQUIRED)
        playlist.name = name
    if 'description' in provided:
        playlist.description = (fields.description or '').strip()
    if 'is_public' in provided and fields.is_public is not None:
        playlist.is_public = fields.is_public

    playlist.touch()
    db.session.commit()
    return (
        jsonify({'message': 'Playlist updated successfully', 'playlist': playlist.to_dict()}),
        200,
    )


@playlist_bp.route('/<int:playlist_id>', methods=['DELETE'])
@login_required
def delete_playlist(playlist_id: int):
    playlist = _owned_playlist(playlist_id)
    deleted = playlist.to_dict()
    # Memberships go with it through the delete-orphan cascade
    db.session.delete(playlist)
    db.session.commit()

    logger.info("Playlist deleted: %s by user %s", deleted['name'], current_user.id)
    return (
        jsonify({'message': 'Playlist deleted successfully', 'deletedPlaylist': deleted}),
        200,
    )


@playlist_bp.route('/<int:playlist_id>/songs', methods=['POST'])
@login_required
def add_song(playlist_id: int):
    song = parse_payload(SongPayload, json_body())
    playlist = _owned_playlist(playlist_id)

    if any(entry.song_id == song.song_id for entry in playlist.entries):
        raise ConflictError(ALREADY_IN_PLAYLIST)

    entry = PlaylistSong(
        playlist_id=playlist.id,
        added_by=current_user.id,
        position=playlist.next_position(),
    )
    entry.apply_song(song)
    db.session.add(entry)
    playlist.touch()
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(ALREADY_IN_PLAYLIST)

    logger.info("Song added to playlist: %s -> %s", song.song_title, playlist.name)
    return (
        jsonify({'message': 'Song added to playlist successfully', 'playlistSong': entry.to_dict()}),
        201,
    )


@playlist_bp.route('/<int:playlist_id>/songs/<song_id>', methods=['DELETE'])
@login_required
def remove_song(playlist_id: int, song_id: str):
    playlist = _owned_playlist(playlist_id)
    entry = next((e for e in playlist.entries if e.song_id == song_id), None)
    if entry is None:
        raise NotFoundError('Song not found in playlist')

    removed = entry.to_dict()
    playlist.entries.remove(entry)
    playlist.touch()
    db.session.commit()
    return (
        jsonify({'message': 'Song removed from playlist successfully', 'removedSong': removed}),
        200,
    )


__all__ = ['playlist_bp']
