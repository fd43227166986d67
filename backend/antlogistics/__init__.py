# backend/antlogistics/__init__.py
import logging

from flask import Flask, current_app, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db
from .validation import DomainError


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize extensions
    db.init_app(app)

    # Import models so metadata is complete before create_all
    from . import models  # noqa: F401
    from .audit import install_audit_policy

    install_audit_policy()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.warehouses import warehouses_bp
    from .routes.commodities import commodities_bp
    from .routes.stocks import stocks_bp
    from .routes.operators import operators_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(warehouses_bp)
    app.register_blueprint(commodities_bp)
    app.register_blueprint(stocks_bp)
    app.register_blueprint(operators_bp)

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        db.session.rollback()
        return jsonify({"error": exc.message}), exc.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.description}), exc.code
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
