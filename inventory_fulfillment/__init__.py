import logging

from flask import Flask
from flask_cors import CORS


def create_app(config_name='default'):
    """Application factory pattern"""
    app = Flask(__name__)

    # Load environment variables
    from dotenv import load_dotenv
    load_dotenv()

    # Load configuration
    from config import config, get_database_uri
    app.config.from_object(config[config_name])
    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        app.config['SQLALCHEMY_DATABASE_URI'] = get_database_uri()

    # Configure logging
    if not app.testing:
        logging.basicConfig(
            level=getattr(logging, app.config['LOG_LEVEL'].upper(), logging.INFO),
            format='%(asctime)s %(levelname)s %(name)s: %(message)s'
        )

    # Initialize correlation ID middleware
    from inventory_fulfillment.api.middlewares.correlation_id import (
        CorrelationIdMiddleware, init_correlation_id_logging
    )
    CorrelationIdMiddleware(app)
    init_correlation_id_logging(app)

    # Initialize database
    from inventory_fulfillment.database import init_db
    init_db(app)

    # CORS setup
    CORS(app, origins=app.config.get('CORS_ORIGINS', ['*']))

    # Register API and health blueprints
    from inventory_fulfillment.api import api_bp, health_bp
    app.register_blueprint(api_bp, url_prefix='/api/v1')
    app.register_blueprint(health_bp)

    # Register error handlers
    from inventory_fulfillment.utils.error_handlers import register_error_handlers
    register_error_handlers(app)

    app.logger.info(f"Inventory fulfillment service initialized ({config_name})")
    return app


def init_database(app):
    """Create database tables (outside Alembic, for development and tests)"""
    from inventory_fulfillment.database import db
    from sqlalchemy import text
    with app.app_context():
        db.session.execute(text('SELECT 1'))
        db.create_all()
        app.logger.info("Database tables created successfully")
