import logging

from flask import Flask

from loyalty_auth.config.settings import Settings

logger = logging.getLogger(__name__)


def configure_app(app: Flask, settings: Settings) -> None:
    app.config["DEBUG"] = settings.debug

    missing = settings.missing_settings()
    if missing:
        # keep serving; auth routes answer 500 until this is fixed
        logger.error("Authentication service is not configured", extra={"missing": missing})

    weak = settings.weak_secrets()
    if weak:
        logger.warning("JWT secrets should be at least 32 characters long", extra={"settings": weak})
