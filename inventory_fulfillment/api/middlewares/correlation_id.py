"""
Correlation ID middleware for Flask application
Tags every request, response and log line with a correlation ID
"""
import uuid
import logging
from contextvars import ContextVar
from flask import Response, g, request, current_app, has_request_context

CORRELATION_HEADER = 'X-Correlation-ID'

# Context variable to store correlation ID for the current request
correlation_id_context: ContextVar[str] = ContextVar('correlation_id', default='')


class CorrelationIdMiddleware:
    """
    Flask middleware for handling correlation IDs
    """

    def __init__(self, app=None):
        self.app = app
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize the middleware with Flask app"""
        app.before_request(self.before_request)
        app.after_request(self.after_request)

    def before_request(self):
        """Extract or generate correlation ID before request processing"""
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())

        g.correlation_id = correlation_id
        correlation_id_context.set(correlation_id)

        current_app.logger.debug(f"{request.method} {request.path} - Processing request")

    def after_request(self, response: Response) -> Response:
        """Add correlation ID to response headers"""
        correlation_id = getattr(g, 'correlation_id', None) or get_correlation_id()
        response.headers[CORRELATION_HEADER] = correlation_id

        current_app.logger.debug(
            f"{request.method} {request.path} - Response: {response.status_code}"
        )
        return response


def get_correlation_id() -> str:
    """Get current correlation ID from Flask g object or context"""
    if has_request_context() and hasattr(g, 'correlation_id'):
        return g.correlation_id
    return correlation_id_context.get() or 'unknown'


class CorrelationIdFilter(logging.Filter):
    """Adds ``correlation_id`` to every log record"""

    def filter(self, record):
        record.correlation_id = get_correlation_id()
        return True


LOG_FORMAT = '%(asctime)s [%(correlation_id)s] %(levelname)s %(name)s: %(message)s'


def init_correlation_id_logging(app):
    """
    Attach the correlation ID filter and format to the root and app handlers
    """
    formatter = logging.Formatter(LOG_FORMAT)
    handlers = list(logging.getLogger().handlers) + list(app.logger.handlers)
    for handler in handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())
        handler.setFormatter(formatter)
