import logging
import time
from datetime import datetime

from flask import Flask, jsonify
from flask_cors import CORS

from payhub.config import Config, validate_config
from payhub.extensions import db, jwt, migrate
from payhub.celery_app import init_celery
from payhub.errors import error_response, register_error_handlers
from payhub.rate_limit import init_rate_limiter


def _configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    app.logger.setLevel(level)


def _register_jwt_callbacks():
    from payhub.models import User

    @jwt.user_lookup_loader
    def load_user(jwt_header, jwt_data):
        """Resolve the token subject to a live user (inactive users and tenants are rejected)."""
        user = db.session.get(User, jwt_data['sub'])
        if user is None or not user.is_active:
            return None
        if user.institution is not None and not user.institution.is_active:
            return None
        return user

    @jwt.user_lookup_error_loader
    def jwt_user_not_found(jwt_header, jwt_data):
        return error_response("User not found or inactive", 401)

    # JWT error handlers for clearer responses
    @jwt.unauthorized_loader
    def jwt_missing_token(err):
        return error_response("Access denied. No token provided.", 401)

    @jwt.invalid_token_loader
    def jwt_invalid_token(err):
        return error_response("Invalid token", 401)

    @jwt.expired_token_loader
    def jwt_expired_token(header, payload):
        return error_response("Token expired", 401)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    validate_config(app.config)
    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    CORS(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}}, supports_credentials=True)

    register_error_handlers(app)
    init_rate_limiter(app)

    started_at = time.monotonic()

    # Health check endpoint - outside /api/ so it is never rate limited
    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({
            "status": "OK",
            "timestamp": datetime.utcnow().isoformat() + 'Z',
            "uptime": round(time.monotonic() - started_at, 3),
            "environment": app.config.get('ENV_NAME')
        }), 200

    # Import models so Flask-Migrate sees every table
    from payhub import models  # noqa: F401

    _register_jwt_callbacks()

    # Register blueprints
    from payhub.api import auth
    app.register_blueprint(auth.bp, url_prefix='/api/auth')
    from payhub.api import institutions
    app.register_blueprint(institutions.bp, url_prefix='/api/institutions')
    from payhub.api import staff
    app.register_blueprint(staff.bp, url_prefix='/api/staff')
    from payhub.api import payslips
    app.register_blueprint(payslips.bp, url_prefix='/api/payslips')
    from payhub.api import subscriptions
    app.register_blueprint(subscriptions.bp, url_prefix='/api/subscriptions')
    from payhub.api import payments
    app.register_blueprint(payments.bp, url_prefix='/api/payments')
    from payhub.api import jobs
    app.register_blueprint(jobs.bp, url_prefix='/api/jobs')

    init_celery(app)
    # Register task modules with the worker
    from payhub.tasks import payslip_tasks  # noqa: F401

    return app
