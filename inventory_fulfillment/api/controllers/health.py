"""
Health Controller - liveness and readiness endpoints outside the API prefix
"""

from datetime import datetime
import logging

from flask import Blueprint, current_app, jsonify

from inventory_fulfillment.utils.health_checks import get_readiness_status

logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health():
    """Basic health check"""
    return jsonify({
        'status': 'healthy',
        'service': current_app.config.get('SERVICE_NAME', 'inventory-fulfillment'),
        'timestamp': datetime.utcnow().isoformat()
    }), 200


@health_bp.route('/health/ready', methods=['GET'])
def readiness():
    """Readiness check including a database round trip"""
    try:
        status = get_readiness_status()
        return jsonify(status), 200 if status['status'] == 'ready' else 503
    except Exception as e:
        logger.exception("Readiness check failed")
        return jsonify({
            'status': 'not ready',
            'timestamp': datetime.utcnow().isoformat(),
            'error': str(e)
        }), 503


@health_bp.route('/health/live', methods=['GET'])
def liveness():
    """Liveness check"""
    return jsonify({
        'status': 'alive',
        'timestamp': datetime.utcnow().isoformat()
    }), 200
