# faq/__init__.py
"""
Main application module for the FAQ service.
This module builds the Flask app, sets up logging, the access-control
layer and the storage backend selected by configuration, and registers
the routes.
"""

from typing import Optional

from flask import Flask

from faq.config import Settings, load_settings
from faq.data_access import DataAccess, build_data_access
from faq.loggers import configure_logging
from faq.security import SecurityManager


def create_app(
    settings: Optional[Settings] = None,
    security: Optional[SecurityManager] = None,
    data_access: Optional[DataAccess] = None,
) -> Flask:
    settings = settings or load_settings()

    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key

    configure_logging(app.logger, settings.ntfy_topic)

    if security is None:
        security = SecurityManager(
            captcha_client=settings.captcha_client,
            captcha_secret=settings.captcha_secret,
            login=settings.admin_login,
            password=settings.admin_password,
            cooldown_minutes=settings.cooldown_minutes,
            show_submission_form=settings.show_submission_form,
            ip_protection=settings.ip_protection,
            fingerprint_key=settings.secret_key.encode() if settings.secret_key else None,
            timeout=settings.http_timeout,
        )
    if data_access is None:
        data_access = build_data_access(settings)

    app.extensions["faq.security"] = security
    app.extensions["faq.data_access"] = data_access
    app.logger.info("FAQ service using %s backend", type(data_access).__name__)

    from faq.routes import bp

    app.register_blueprint(bp)
    return app
