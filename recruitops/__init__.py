"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints.
"""
import logging

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger('recruitops')


def create_app():
    """Create and configure the Flask application."""
    from recruitops.logging_config import configure_logging

    app = Flask(__name__)

    configure_logging(app)

    # ── Identity ────────────────────────────────────────────────────────
    from recruitops.auth import AuthError, load_identity

    app.before_request(load_identity)

    # ── Error mapping ───────────────────────────────────────────────────
    from recruitops.database import StoreUnavailableError

    @app.errorhandler(AuthError)
    def handle_auth_error(e):
        return jsonify({'error': e.message}), e.status

    @app.errorhandler(StoreUnavailableError)
    def handle_store_unavailable(e):
        logger.error("Store unavailable during %s: %s", e.operation, e.cause)
        return jsonify({'error': 'store_unavailable', 'retryable': True}), 503

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e):
        logger.error("Database error: %s", e, exc_info=True)
        return jsonify({'error': 'store_unavailable', 'retryable': True}), 503

    # Register blueprints
    from recruitops.routes.runs import bp as runs_bp
    from recruitops.routes.webhook import bp as webhook_bp
    from recruitops.routes.claims import bp as claims_bp
    from recruitops.routes.warmup import bp as warmup_bp
    from recruitops.routes.usage import bp as usage_bp
    from recruitops.routes.blacklist import bp as blacklist_bp
    from recruitops.routes.orgs import bp as orgs_bp
    from recruitops.routes.health import bp as health_bp

    app.register_blueprint(runs_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(claims_bp)
    app.register_blueprint(warmup_bp)
    app.register_blueprint(usage_bp)
    app.register_blueprint(blacklist_bp)
    app.register_blueprint(orgs_bp)
    app.register_blueprint(health_bp)

    # Circuit breaker for the outreach collaborator
    from recruitops.extensions import redis_client
    from recruitops.services.circuit_breaker import init_breakers
    init_breakers(redis_client)

    # Import models so Base.metadata knows about them.
    # Schema is managed by Alembic; no create_all() here
    import importlib
    for name in ('organization', 'usage', 'warmup', 'job_claim', 'blacklist', 'run', 'prospect', 'api_key'):
        importlib.import_module(f'recruitops.models.{name}')

    return app
