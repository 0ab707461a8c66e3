#!/usr/bin/env python3
"""
Inventory Fulfillment Service
Flask service for stock reservation and sales order fulfillment.
"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from inventory_fulfillment.validators.config_validator import validate_config

validate_config()

from inventory_fulfillment import create_app, init_database

# Configure logging
logging.basicConfig(
    level=getattr(logging, os.environ.get('LOG_LEVEL', 'INFO').upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Main application entry point."""
    env = os.environ.get('FLASK_ENV', 'production')

    logger.info(f"Starting Inventory Fulfillment Service in {env} mode")

    app = create_app(env)

    # Initialize database tables
    try:
        init_database(app)
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        if env == 'production':
            raise
        logger.warning("Continuing without database in development mode")

    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 5000))
    debug = env == 'development'

    logger.info(f"Starting Inventory Fulfillment Service on {host}:{port}")

    app.run(
        host=host,
        port=port,
        debug=debug,
        threaded=True
    )


if __name__ == '__main__':
    main()
