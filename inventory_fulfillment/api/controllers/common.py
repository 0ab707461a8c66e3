"""
Shared request helpers for controllers
"""

from flask import current_app, request

IDEMPOTENCY_HEADER = 'Idempotency-Key'


def json_body():
    """Request JSON object, empty when the body is missing"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def idempotency_key_from(data):
    """Body field wins over the Idempotency-Key header"""
    return data.get('idempotency_key') or request.headers.get(IDEMPOTENCY_HEADER)


def clamp_per_page(per_page=None):
    """Requested page size, defaulted and capped by configuration"""
    per_page = per_page or current_app.config.get('DEFAULT_PAGE_SIZE', 20)
    return min(per_page, current_app.config.get('MAX_PAGE_SIZE', 100))


def pagination(page, per_page, total):
    return {
        'page': page,
        'per_page': per_page,
        'total': total,
        'pages': (total + per_page - 1) // per_page
    }
