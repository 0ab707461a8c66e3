"""
Health Check Utilities
"""

from datetime import datetime
import time
import logging

from sqlalchemy import text

from inventory_fulfillment.database import db

logger = logging.getLogger(__name__)


def check_database_health():
    """Check database connectivity with a round trip"""
    try:
        start_time = time.time()
        db.session.execute(text('SELECT 1'))
        db.session.commit()
        response_time = (time.time() - start_time) * 1000

        return {
            'status': 'healthy',
            'message': 'Database connection is healthy',
            'response_time': round(response_time, 2),
            'details': {
                'dialect': db.engine.dialect.name,
            },
        }
    except Exception as e:
        db.session.rollback()
        logger.error(f"Database health check failed: {e}")
        return {
            'status': 'unhealthy',
            'message': f'Database health check failed: {str(e)}',
            'response_time': 0,
            'details': {
                'error': str(e),
                'database_url': db.engine.url.render_as_string(hide_password=True),
            },
        }


def get_readiness_status():
    database = check_database_health()
    return {
        'status': 'ready' if database['status'] == 'healthy' else 'not ready',
        'timestamp': datetime.utcnow().isoformat(),
        'checks': {'database': database},
    }
