from flask import jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
import logging

from inventory_fulfillment.errors import FulfillmentError

logger = logging.getLogger(__name__)


def error_response(error):
    """Response body and status for an exception raised while serving a request"""
    if isinstance(error, ValidationError):
        return {
            'error': 'VALIDATION_ERROR',
            'message': 'Request data validation failed',
            'details': error.messages,
            'status_code': 400
        }, 400
    if isinstance(error, FulfillmentError):
        return error.to_dict(), error.http_status
    if isinstance(error, ValueError):
        return {
            'error': 'INVALID_VALUE',
            'message': str(error),
            'status_code': 400
        }, 400
    logger.error(f"Unhandled error: {error}", exc_info=error)
    return {
        'error': 'INTERNAL_SERVER_ERROR',
        'message': 'An unexpected error occurred',
        'status_code': 500
    }, 500


def register_error_handlers(app):
    """Register application error handlers"""

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Not Found',
            'message': 'The requested resource was not found',
            'status_code': 404
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'error': 'Method Not Allowed',
            'message': 'The method is not allowed for the requested URL',
            'status_code': 405
        }), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}")
        return jsonify({
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred',
            'status_code': 500
        }), 500

    @app.errorhandler(FulfillmentError)
    def fulfillment_error(error):
        body, status = error_response(error)
        return jsonify(body), status

    @app.errorhandler(ValidationError)
    def validation_error(error):
        body, status = error_response(error)
        return jsonify(body), status

    @app.errorhandler(ValueError)
    def value_error(error):
        body, status = error_response(error)
        return jsonify(body), status

    @app.errorhandler(HTTPException)
    def http_exception(error):
        return jsonify({
            'error': error.name,
            'message': error.description,
            'status_code': error.code
        }), error.code
