from __future__ import annotations

import logging
import sys

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.coordinator import SessionCoordinator
from .game.scheduler import SocketIOTimers
from .game.words import DEFAULT_WORD_POOLS, WordSource, load_pools
from .realtime.broadcast import SocketIOBroadcaster
from .realtime.handlers import register_socketio_handlers
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp


def create_app(config_class=Config, timers=None) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    async_mode = app.config.get("SOCKETIO_ASYNC_MODE", "")
    if not async_mode:
        # Default choice:
        # - Windows: threading (eventlet has known compatibility issues on newer Python)
        # - Python >= 3.13: threading (safer default)
        # - Otherwise: eventlet
        if sys.platform.startswith("win") or sys.version_info >= (3, 13):
            async_mode = "threading"
        else:
            async_mode = "eventlet"

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=async_mode,
    )

    pools_file = app.config.get("WORD_POOLS_FILE", "")
    words = WordSource(
        pools=load_pools(pools_file) if pools_file else DEFAULT_WORD_POOLS,
        default_pool=app.config.get("DEFAULT_WORD_POOL", "easy"),
    )

    coordinator = SessionCoordinator(
        SocketIOBroadcaster(socketio),
        timers or SocketIOTimers(socketio),
        config=app.config,
        words=words,
    )
    app.extensions["sketchguess"] = coordinator

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")

    register_socketio_handlers(socketio, coordinator)

    return app, socketio
