"""Route blueprints exposed via Flask."""

from .auth import auth_bp
from .songs import songs_bp
from .search_history import search_history_bp
from .favorites import favorite_bp
from .history import history_bp
from .playlist import playlist_bp
from .artist import artist_bp
from .health import health_bp

__all__ = [
    "auth_bp",
    "songs_bp",
    "search_history_bp",
    "favorite_bp",
    "history_bp",
    "playlist_bp",
    "artist_bp",
    "health_bp",
]
