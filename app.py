import os
import logging
from datetime import datetime
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Flask specific imports ---
from flask import Flask, request, jsonify, g
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

# --- Import our configuration and the backend building blocks ---
from config import Config
from tracktide.auth import init_auth
from tracktide.catalog import DeezerCatalog
from tracktide.database.db_manager import db, initialize_database
from tracktide.errors import AuthError, TrackTideError
from tracktide.interfaces.http.routes import (
    songs_bp,
    search_history_bp,
    favorite_bp,
    history_bp,
    playlist_bp,
    artist_bp,
    health_bp,
)
from tracktide.observability import configure_structured_logging, metrics_blueprint
from tracktide.observability.metrics import record_auth_failure
from tracktide.utils.cache import TTLCache


logger = logging.getLogger(__name__)


def configure_logging(log_dir: str) -> str:
    """
    Configure root logging with:
      - FileHandler (INFO+) to a new file per run: log-YYYY-MM-DD-HH-MM-SS
      - StreamHandler (WARNING+) to console when ENABLE_CONSOLE_LOGS is on
      - Werkzeug/Flask loggers routed to root (no extra console spam)

    Returns the path to the created log file.
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_filename = f"log-{timestamp}"
    log_path = os.path.join(log_dir, log_filename)

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    # Preserve structured handlers; remove existing FileHandlers to avoid duplicates
    root.handlers = [h for h in root.handlers if not isinstance(h, logging.FileHandler)]

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # File: INFO and above
    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    # Console handler optional: keep backend console quiet unless explicitly enabled
    if Config.ENABLE_CONSOLE_LOGS:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    # Quiet Flask/Werkzeug own console handlers; let them propagate to root
    for name in ("werkzeug", "flask.app"):
        _l = logging.getLogger(name)
        _l.setLevel(logging.INFO)
        _l.handlers = []
        _l.propagate = True

    return log_path


def build_catalog(app) -> DeezerCatalog:
    artist_cache = TTLCache(
        maxsize=app.config['METADATA_CACHE_MAXSIZE'],
        ttl=app.config['METADATA_CACHE_TTL_SECONDS'],
    )
    return DeezerCatalog(
        base_url=app.config['CATALOG_BASE_URL'],
        timeout=app.config['CATALOG_TIMEOUT_SECONDS'],
        artist_cache=artist_cache,
    )


def register_error_handlers(app) -> None:
    @app.errorhandler(TrackTideError)
    def _handle_tracktide_error(exc: TrackTideError):
        if isinstance(exc, AuthError):
            record_auth_failure()
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        code = (exc.name or 'error').lower().replace(' ', '_')
        return jsonify({'error': exc.description, 'code': code}), exc.code

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        return jsonify({'error': 'Internal server error', 'code': 'internal_error'}), 500


def create_app(config_overrides=None, catalog=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)
    configure_structured_logging(app)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or uuid4().hex

    @app.after_request
    def _inject_request_id(response):
        if getattr(g, 'request_id', None):
            response.headers.setdefault('X-Request-ID', g.request_id)
        return response

    allowed_origins = sorted({
        origin.strip()
        for origin in app.config['CORS_ALLOWED_ORIGINS']
        if origin and origin.strip() and origin.strip() != "*"
    })
    CORS(
        app,
        resources={r"/api/*": {"origins": allowed_origins}},
        expose_headers=["X-Request-ID"],
    )

    # Initialize database and bearer-token auth (registers the auth blueprint)
    initialize_database(app)
    init_auth(app)

    # Catalog client is shared by the search and artist routes
    app.extensions['catalog'] = catalog if catalog is not None else build_catalog(app)

    register_error_handlers(app)

    # --- Register Blueprints ---
    app.register_blueprint(songs_bp)
    app.register_blueprint(search_history_bp)
    app.register_blueprint(favorite_bp)
    app.register_blueprint(history_bp)
    app.register_blueprint(playlist_bp)
    app.register_blueprint(artist_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(metrics_blueprint)

    @app.route('/')
    def index():
        return jsonify(
            {
                'message': 'TrackTide backend API',
                'status': 'Server is running',
                'endpoints': {
                    'auth': {
                        'signup': 'POST /api/auth/signup',
                        'login': 'POST /api/auth/login',
                        'me': 'GET /api/auth/me',
                    },
                    'search': 'GET /api/songs/search',
                    'health': 'GET /api/health',
                },
            }
        )

    return app

if __name__ == '__main__':
    # Configure logging:
    # - In debug with reloader: only in the child process to avoid duplicate files
    # - In non-debug: always configure here
    debug_mode = bool(Config.DEBUG)
    log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'tracktide', 'log')
    if debug_mode:
        if os.environ.get('WERKZEUG_RUN_MAIN') == 'true':
            log_file_path = configure_logging(log_dir)
            logger.info("File logging initialized at %s", log_file_path)
    else:
        log_file_path = configure_logging(log_dir)
        logger.info("File logging initialized at %s", log_file_path)

    if Config.SECRET_KEY == 'change-this-tracktide-secret':
        logger.warning("SECRET_KEY is not set; bearer tokens are signed with the development default.")

    app = create_app()
    # Route app.logger through root handlers, keep levels consistent
    app.logger.handlers = []
    app.logger.setLevel(logging.INFO)
    app.logger.propagate = True
    logger.info("Starting Flask application on port %s...", Config.PORT)
    app.run(debug=Config.DEBUG, host='0.0.0.0', port=Config.PORT, threaded=True)
