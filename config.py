#!/usr/bin/env python
# config.py
import os
from typing import List

# This assumes config.py is at the root of your project
basedir = os.path.abspath(os.path.dirname(__file__))


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_csv_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name)
    source = raw if raw is not None else default
    return [token.strip() for token in source.split(",") if token and token.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-this-tracktide-secret'

    # Database (TrackTide)
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'tracktide', 'database', 'instance', 'tracktide.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer tokens: 7 days
    TOKEN_MAX_AGE_SECONDS = _get_int('TOKEN_MAX_AGE_SECONDS', 7 * 24 * 3600)
    TOKEN_SALT = os.getenv('TOKEN_SALT', 'tracktide-auth')
    MIN_PASSWORD_LENGTH = max(1, _get_int('MIN_PASSWORD_LENGTH', 6))

    # Catalog (Deezer public API)
    CATALOG_BASE_URL = os.getenv('CATALOG_BASE_URL', 'https://api.deezer.com').rstrip('/')
    CATALOG_TIMEOUT_SECONDS = _get_int('CATALOG_TIMEOUT_SECONDS', 10)

    # Artist lookups are cached; search results are not
    METADATA_CACHE_TTL_SECONDS = _get_int('METADATA_CACHE_TTL_SECONDS', 300)
    METADATA_CACHE_MAXSIZE = max(1, _get_int('METADATA_CACHE_MAXSIZE', 256))

    # Listing limits
    SEARCH_HISTORY_LIMIT = max(1, _get_int('SEARCH_HISTORY_LIMIT', 5))
    PLAY_HISTORY_LIMIT = max(1, _get_int('PLAY_HISTORY_LIMIT', 20))

    # Popular artists: seed pool of Deezer artist ids, shuffled per request
    POPULAR_ARTIST_IDS = [
        13, 27, 412, 75798, 1039, 116, 118, 119, 120, 121, 122, 123, 124, 125,
        126, 127, 128, 129, 130, 131, 132, 133, 134, 135, 136, 137, 138, 139,
        140, 141, 142, 143, 144, 145, 146, 147, 148, 149, 150,
    ]
    POPULAR_ARTIST_LIMIT = max(1, _get_int('POPULAR_ARTIST_LIMIT', 20))

    # HTTP
    PORT = _get_int('PORT', 3001)
    CORS_ALLOWED_ORIGINS = _get_csv_list(
        'CORS_ALLOWED_ORIGINS',
        'http://localhost:5173,http://localhost:3000',
    )

    # Runtime behavior
    # Turn Flask debug on/off from env; default off to avoid noisy console
    DEBUG = _get_bool('DEBUG', False)
    # Control console logging; when disabled, logs go only to file
    ENABLE_CONSOLE_LOGS = _get_bool('ENABLE_CONSOLE_LOGS', False)
