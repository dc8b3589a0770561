from functools import wraps
import hmac

from flask import current_app, jsonify, request

ADMIN_TOKEN_HEADER = 'X-Admin-Token'


def check_token(supplied, expected):
    """Constant-time comparison of an admin token.

    Returns:
        bool: True if both are non-empty and equal
    """
    if not supplied or not expected:
        return False
    return hmac.compare_digest(supplied.encode(), expected.encode())


def admin_required(f):
    """Decorator to protect admin routes.
    Requires the X-Admin-Token header to match ADMIN_TOKEN; with no
    ADMIN_TOKEN configured the admin surface is disabled entirely.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get('ADMIN_TOKEN')
        if not expected:
            return jsonify({'success': False, 'error': 'forbidden', 'message': 'Admin access is disabled'}), 403

        if not check_token(request.headers.get(ADMIN_TOKEN_HEADER), expected):
            current_app.logger.warning('Rejected admin request to %s from %s', request.path, request.remote_addr)
            return jsonify({'success': False, 'error': 'unauthorized', 'message': 'Unauthorized'}), 401
        return f(*args, **kwargs)
    return decorated_function
