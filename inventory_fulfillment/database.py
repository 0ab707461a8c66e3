"""
Database configuration and instance
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Initialize database instance
db = SQLAlchemy()
migrate = Migrate()


def init_db(app):
    """Initialize database with Flask app"""
    db.init_app(app)
    migrate.init_app(app, db)

    # Movement ledger guards are attached once the models are importable
    from inventory_fulfillment.models.movement_entry import register_immutability_listeners
    register_immutability_listeners()
    return db
