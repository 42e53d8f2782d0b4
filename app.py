import logging
from datetime import datetime
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from config import Config
from extensions import db, migrate, cache, csrf, sentiment_gateway
from services.errors import JournalError


def _error_response(status, error, message):
    return jsonify({
        'timestamp': datetime.utcnow().isoformat(),
        'message': message,
        'status': status,
        'error': error,
    }), status


def register_error_handlers(app):
    """Render every error as JSON. Internal causes are logged, never returned."""

    @app.errorhandler(JournalError)
    def handle_journal_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{type(error).__name__}: {error.message}", exc_info=error.__cause__)
        else:
            app.logger.warning(f"{type(error).__name__}: {error.message}")
        return _error_response(error.status_code, error.error, error.message)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return _error_response(error.code, error.name, error.description)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception(f"Unexpected error: {error}")
        return _error_response(500, "Internal Server Error", "An unexpected error occurred")


def create_app(config_class=Config):
    # Create and configure the app
    app = Flask(__name__)
    app.config.from_object(config_class)
    logging.basicConfig(level=app.config['LOG_LEVEL'])
    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    cache.init_app(app)
    csrf.init_app(app)
    sentiment_gateway.init_app(app, cache_backend=app.extensions['cache'][cache])

    register_error_handlers(app)

    # Import models here to avoid circular imports
    import models  # noqa: F401

    # Register blueprints
    from routes.journal import journal_bp
    from routes.health import health_bp

    # JSON API, no form posts to protect
    csrf.exempt(journal_bp)
    csrf.exempt(health_bp)

    app.register_blueprint(journal_bp, url_prefix='/api/entries')
    app.register_blueprint(health_bp, url_prefix='/api/health')

    # Create database tables
    with app.app_context():
        db.create_all()

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
