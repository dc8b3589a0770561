"""
Admin endpoints: browse every wishlist row and delete rows by id.
Token-protected; see helpers.auth_utils.admin_required.
"""
from flask import Blueprint, jsonify, request

from wishlist_api.helpers.auth_utils import admin_required
from wishlist_api.routes.api import get_gateway

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


@admin_bp.route('/wishlist')
@admin_required
def browse_wishlist():
    # GET /admin/wishlist?page=1&page_size=100&user_id=&product_id=
    payload, status = get_gateway().browse(request.args)
    return jsonify(payload), status


@admin_bp.route('/wishlist/<int:entry_id>')
@admin_required
def get_wishlist_entry(entry_id: int):
    payload, status = get_gateway().get_entry(entry_id)
    return jsonify(payload), status


@admin_bp.route('/wishlist/<int:entry_id>', methods=['DELETE'])
@admin_required
def delete_wishlist_entry(entry_id: int):
    payload, status = get_gateway().delete_by_id(entry_id)
    return jsonify(payload), status
