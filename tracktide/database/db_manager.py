# tracktide/database/db_manager.py
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash
import os  # Import os for path handling
import logging
from datetime import datetime, timezone
from sqlalchemy import ForeignKey, UniqueConstraint, CheckConstraint, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import relationship

# Initialize the SQLAlchemy object
db = SQLAlchemy()
logger = logging.getLogger(__name__)

FAVORITE_CONTEXTS = ('search', 'playlist', 'recommendation')
FOLLOW_TYPES = ('artist', 'user')


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    last_login_at = db.Column(db.DateTime, nullable=True)

    favorites = relationship("FavoriteSong", back_populates="owner", cascade="all, delete-orphan", lazy=True)
    plays = relationship("PlayHistory", back_populates="owner", cascade="all, delete-orphan", lazy=True)
    searches = relationship("SearchHistory", back_populates="owner", cascade="all, delete-orphan", lazy=True)
    playlists = relationship("Playlist", back_populates="owner", cascade="all, delete-orphan", lazy=True)
    follows = relationship("UserFollow", back_populates="follower", cascade="all, delete-orphan", lazy=True)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def get_id(self) -> str:
        return str(self.id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
        }

    def __repr__(self) -> str:
        return f"<User {self.email}>"


class SongFieldsMixin:
    """Denormalized catalog song fields shared by every song-bearing table."""

    song_id = db.Column(db.String(64), nullable=False)
    song_title = db.Column(db.String(255), nullable=False)
    artist_name = db.Column(db.String(255), nullable=False)
    album_name = db.Column(db.String(255), nullable=False)
    duration = db.Column(db.Integer, nullable=False)
    cover = db.Column(db.String(500), nullable=False)
    preview = db.Column(db.String(500), nullable=False)

    def song_dict(self) -> dict:
        return {
            'songId': self.song_id,
            'songTitle': self.song_title,
            'artistName': self.artist_name,
            'albumName': self.album_name,
            'duration': self.duration,
            'cover': self.cover,
            'preview': self.preview,
        }

    def apply_song(self, song) -> None:
        """Copy fields from a validated SongPayload."""
        self.song_id = song.song_id
        self.song_title = song.song_title
        self.artist_name = song.artist_name
        self.album_name = song.album_name
        self.duration = song.duration
        self.cover = song.cover
        self.preview = song.preview


class SearchHistory(db.Model):
    __tablename__ = 'search_history'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    # Stored as 'query'; the attribute must not shadow Model.query
    search_query = db.Column('query', db.String(255), nullable=False)
    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    owner = relationship('User', back_populates='searches')

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'userId': self.user_id,
            'query': self.search_query,
            'timestamp': _iso(self.timestamp),
        }


class FavoriteSong(SongFieldsMixin, db.Model):
    __tablename__ = 'favorite_songs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    liked_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    context = db.Column(db.String(32), nullable=False, default='search')

    owner = relationship('User', back_populates='favorites')

    __table_args__ = (
        UniqueConstraint('user_id', 'song_id', name='uq_favorite_song_once'),
        CheckConstraint(
            "context IN ('search', 'playlist', 'recommendation')",
            name='ck_favorite_context',
        ),
    )

    def to_dict(self) -> dict:
        data = {'id': self.id, 'userId': self.user_id}
        data.update(self.song_dict())
        data['likedAt'] = _iso(self.liked_at)
        data['context'] = self.context
        return data


class PlayHistory(SongFieldsMixin, db.Model):
    __tablename__ = 'play_history'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    played_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    completed = db.Column(db.Boolean, default=False, nullable=False)

    owner = relationship('User', back_populates='plays')

    __table_args__ = (
        UniqueConstraint('user_id', 'song_id', name='uq_play_history_song_once'),
    )

    def to_dict(self) -> dict:
        data = {'id': self.id, 'userId': self.user_id}
        data.update(self.song_dict())
        data['playedAt'] = _iso(self.played_at)
        data['completed'] = self.completed
        return data


class Playlist(db.Model):
    __tablename__ = 'playlists'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(
        db.Integer,
        ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    is_public = db.Column(db.Boolean, nullable=False, default=False, index=True)
    cover_image = db.Column(db.String(500), nullable=False, default='')
    tags = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    owner = relationship('User', back_populates='playlists')
    entries = relationship(
        'PlaylistSong',
        back_populates='playlist',
        order_by='[PlaylistSong.position.asc(), PlaylistSong.added_at.desc()]',
        cascade='all, delete-orphan',
        lazy='selectin',
    )

    def touch(self) -> None:
        self.updated_at = utcnow()

    @property
    def song_count(self) -> int:
        return len(self.entries or [])

    @property
    def total_duration(self) -> int:
        return sum(entry.duration or 0 for entry in self.entries or [])

    def next_position(self) -> int:
        # Positions are never renumbered; gaps left by removals stay
        return max((entry.position for entry in self.entries), default=0) + 1

    def to_dict(self, *, include_song_summary: bool = False) -> dict:
        data = {
            'id': self.id,
            'ownerId': self.owner_id,
            'name': self.name,
            'description': self.description or '',
            'isPublic': self.is_public,
            'coverImage': self.cover_image or '',
            'tags': list(self.tags or []),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
            'songCount': self.song_count,
            'totalDuration': self.total_duration,
        }
        if include_song_summary:
            data['songs'] = [
                {
                    'songId': entry.song_id,
                    'songTitle': entry.song_title,
                    'artistName': entry.artist_name,
                }
                for entry in self.entries
            ]
        return data


class PlaylistSong(SongFieldsMixin, db.Model):
    __tablename__ = 'playlist_songs'

    id = db.Column(db.Integer, primary_key=True)
    playlist_id = db.Column(
        db.Integer,
        ForeignKey('playlists.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    added_by = db.Column(db.Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    added_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    playlist = relationship('Playlist', back_populates='entries')

    __table_args__ = (
        UniqueConstraint('playlist_id', 'song_id', name='uq_playlist_song_once'),
    )

    def to_dict(self) -> dict:
        data = {'id': self.id, 'playlistId': self.playlist_id}
        data.update(self.song_dict())
        data['addedBy'] = self.added_by
        data['addedAt'] = _iso(self.added_at)
        data['position'] = self.position
        return data


class UserFollow(db.Model):
    __tablename__ = 'user_follows'

    id = db.Column(db.Integer, primary_key=True)
    follower_id = db.Column(db.Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    followed_type = db.Column(db.String(16), nullable=False)
    followed_id = db.Column(db.String(64), nullable=False)
    followed_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    notifications_enabled = db.Column(db.Boolean, default=True, nullable=False)

    follower = relationship('User', back_populates='follows')

    __table_args__ = (
        UniqueConstraint('follower_id', 'followed_type', 'followed_id', name='uq_follow_once'),
        CheckConstraint("followed_type IN ('artist', 'user')", name='ck_follow_type'),
    )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'followerId': self.follower_id,
            'followedType': self.followed_type,
            'followedId': self.followed_id,
            'followedAt': _iso(self.followed_at),
            'notificationsEnabled': self.notifications_enabled,
        }

    @staticmethod
    def followed_ids(user_id: int, followed_type: str = 'artist') -> set:
        rows = (
            db.session.query(UserFollow.followed_id)
            .filter(UserFollow.follower_id == user_id, UserFollow.followed_type == followed_type)
            .all()
        )
        return {followed_id for (followed_id,) in rows}


def database_ready() -> bool:
    """Cheap connectivity probe used by the health endpoint."""
    try:
        db.session.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.warning("Database probe failed: %s", exc)
        db.session.rollback()
        return False


def initialize_database(app):
    """
    Initializes the SQLAlchemy extension with the Flask app instance
    and creates all database tables if they don't already exist.
    """
    db.init_app(app)
    # Ensure the instance folder exists for SQLite database file
    instance_path = app.instance_path
    if not os.path.exists(instance_path):
        os.makedirs(instance_path)
        logger.info("Created instance folder: %s", instance_path)

    # Ensure the directory for the configured SQLite file exists
    try:
        uri = app.config.get('SQLALCHEMY_DATABASE_URI')
        if uri:
            url = make_url(uri)
            # Only handle file-based SQLite (not :memory:)
            if url.get_backend_name() == 'sqlite' and url.database and url.database != ':memory:':
                db_dir = os.path.dirname(url.database)
                if db_dir and not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)
                    logger.info("Created SQLite DB directory: %s", db_dir)
    except Exception as e:
        # Don't block app startup on path parsing issues; log and continue
        logger.warning("Could not ensure SQLite directory exists: %s", e)

    # Create database tables within the application context
    with app.app_context():
        db.create_all()
        logger.info("Database tables created or already exist.")
