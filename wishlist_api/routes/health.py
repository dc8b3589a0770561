"""Liveness and readiness endpoints."""
from flask import Blueprint, current_app, jsonify

from wishlist_api.exceptions import StoreError
from wishlist_api.helpers.db import EXTENSION_KEY

health_bp = Blueprint('health', __name__)


@health_bp.route('/')
def index():
    return 'Wishlist API is up and running!'


@health_bp.route('/health')
def health():
    db = current_app.extensions.get(EXTENSION_KEY)
    if db is None:
        return jsonify({'success': True, 'database': 'not configured'})

    try:
        db.ping()
    except StoreError as e:
        return jsonify({'success': False, 'database': 'unavailable', 'message': e.message}), 503
    return jsonify({'success': True, 'database': 'ok'})
