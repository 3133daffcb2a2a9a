# loyalty_auth/main.py
from __future__ import annotations

from typing import Optional

from flask import Flask
from flask_cors import CORS

from loyalty_auth.api.container import EXTENSION_KEY, AuthContainer
from loyalty_auth.api.middlewares.error_handler import register_error_handlers
from loyalty_auth.api.routes import register_routes
from loyalty_auth.cli import register_cli
from loyalty_auth.config.flask_config import configure_app
from loyalty_auth.config.logging_config import configure_logging
from loyalty_auth.config.settings import Settings
from loyalty_auth.infrastructure.database.session import Database


def create_app(settings: Optional[Settings] = None, *, database: Optional[Database] = None) -> Flask:
    settings = settings or Settings()
    configure_logging(settings)

    app = Flask(__name__)

    # CORS before the routes so preflight requests are answered
    CORS(
        app,
        resources={rf"{settings.api_prefix}/auth/*": {"origins": settings.cors_origin or "*"}},
        allow_headers=["Content-Type", "Authorization"],
        methods=["POST", "OPTIONS"],
        supports_credentials=True,
    )

    configure_app(app, settings)

    app.extensions[EXTENSION_KEY] = AuthContainer.build(settings, database)

    register_routes(app, api_prefix=settings.api_prefix)
    register_error_handlers(app)
    register_cli(app)

    return app
