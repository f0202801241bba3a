# sportclub/__init__.py
import os
import logging
from flask import Flask, jsonify, request
from werkzeug.middleware.proxy_fix import ProxyFix
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration
from config import Config
from sportclub.extensions import db, migrate, login_manager, cors

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger('gunicorn.error')


def register_extensions(app):
    """Register Flask extensions."""
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    cors.init_app(app, resources={
        r"/api/*": {
            "origins": app.config.get('CORS_ORIGINS', []),
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "X-Club-Id"],
            "expose_headers": ["Content-Type", "Content-Disposition"],
            "supports_credentials": True
        }
    })


def register_blueprints(app):
    """Register Flask blueprints."""
    from sportclub.routes import register_routes
    register_routes(app)


def configure_login_manager(app):
    """Configure Flask-Login to authenticate API requests from bearer tokens."""
    from sportclub.auth import load_user_from_request, unauthorized_response

    login_manager.request_loader(load_user_from_request)
    login_manager.unauthorized_handler(unauthorized_response)

    @login_manager.user_loader
    def load_user(user_id):
        from sportclub.models import User
        return db.session.get(User, int(user_id))


def create_app(config_class=Config):
    """Application factory function."""
    # Initialize Sentry in production
    if os.getenv('FLASK_ENV') == 'production' and os.getenv('SENTRY_DSN'):
        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=1.0,
            environment="production"
        )

    app = Flask(__name__)
    app.logger.handlers = logger.handlers
    app.logger.setLevel(logger.level)

    # Determine environment and configure the app
    env = os.getenv('FLASK_ENV', 'production')
    if isinstance(config_class, dict):
        config_obj = config_class[env]
    else:
        config_obj = config_class

    config_obj.validate()
    app.config.from_object(config_obj)

    # Configure proxy settings for HTTPS
    app.wsgi_app = ProxyFix(
        app.wsgi_app,
        x_for=1,
        x_proto=1,
        x_host=1,
        x_prefix=1
    )

    if app.debug:
        app.logger.info(f"CORS origins configured for: {app.config.get('CORS_ORIGINS')}")

    # Initialize extensions and register blueprints
    register_extensions(app)
    register_blueprints(app)
    configure_login_manager(app)

    # Error handlers
    @app.errorhandler(404)
    def not_found_error(error):
        if request.path.startswith('/api/'):
            return jsonify({"error": "Resource not found"}), 404
        return "Not found", 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({"error": "Payload too large"}), 413

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        if request.path.startswith('/api/'):
            return jsonify({"error": "Internal server error"}), 500
        return "Internal server error", 500

    # Security headers
    @app.after_request
    def after_request(response):
        response.headers.update({
            'X-Content-Type-Options': 'nosniff',
            'X-Frame-Options': 'SAMEORIGIN',
            'X-XSS-Protection': '1; mode=block'
        })
        if not app.debug and not app.testing:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    @app.route('/')
    def index():
        return 'SportClub API is running'

    @app.route('/api/health')
    def health_check():
        return jsonify({"status": "healthy"}), 200

    return app
