# storefront/__init__.py
import os

import structlog
from flask import Flask, jsonify, send_from_directory

from .config import Config
from .errors import register_error_handlers
from .extensions import db, jwt, cors, migrate
from .utils.logging import configure_logging

log = structlog.get_logger(__name__)


def create_app(config=None, payments=None):
    """Build the API.

    ``config`` is a config class (default :class:`Config`) or a mapping of
    overrides applied on top of it. ``payments`` replaces the Stripe gateway,
    which tests use to avoid network calls.
    """
    app = Flask(__name__, instance_relative_config=True)

    config_class = config if isinstance(config, type) else Config
    app.config.from_object(config_class)
    config_class.init_app(app)
    if isinstance(config, dict):
        app.config.update(config)

    configure_logging(app)

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    origins = {"origins": app.config.get("CORS_ORIGINS", "*")}
    cors.init_app(app, resources={r"/api/*": origins, r"/checkout*": origins})
    migrate.init_app(app, db)

    from .services.payments import init_gateway
    init_gateway(app, payments)

    register_error_handlers(app)

    from .cli import register_cli
    register_cli(app)

    # Register blueprints
    from .auth import bp as auth_bp; app.register_blueprint(auth_bp)
    from .product import bp as product_bp, admin_bp as product_admin_bp
    app.register_blueprint(product_bp)
    app.register_blueprint(product_admin_bp)
    from .checkout import bp as checkout_bp; app.register_blueprint(checkout_bp)
    from .webhook import bp as webhook_bp; app.register_blueprint(webhook_bp)
    # same views at the bare paths the storefront and Stripe dashboard use
    app.register_blueprint(checkout_bp, url_prefix="/checkout", name="checkout_root")
    app.register_blueprint(webhook_bp, url_prefix="/webhook", name="webhook_root")
    from .order import bp as order_bp; app.register_blueprint(order_bp)
    from .submission import bp as submission_bp; app.register_blueprint(submission_bp)

    @app.get("/")
    def health():
        return jsonify(ok=True, msg="API running")

    @app.get("/uploads/<path:filename>")
    def uploaded_file(filename):
        from .services.storage import upload_folder
        return send_from_directory(upload_folder(), filename)

    with app.app_context():
        db.create_all()

    log.info("app_created", blueprints=sorted(app.blueprints), testing=app.testing)
    return app
