"""
JSON API endpoints consumed by the storefront.
All routes return JSON and are prefixed with /api.
"""
from flask import Blueprint, abort, current_app, jsonify, request

from wishlist_api.services.gateway import WishlistGateway

api_bp = Blueprint('api', __name__, url_prefix='/api')

# POST-only paths that share the /wishlist/<user_id> namespace
MUTATION_PATHS = ('add', 'remove')


def get_gateway() -> WishlistGateway:
    return current_app.extensions['wishlist_gateway']


def get_json_payload() -> dict:
    """Return a JSON body as dict; never raises."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# ═══════════════════════════════════════════════════════════════════
#  1. ADD: insert, or refresh an existing entry
#     POST /api/wishlist/add   { user_id, product_id, variant_id?, product_title?, ... }
# ═══════════════════════════════════════════════════════════════════
@api_bp.route('/wishlist/add', methods=['POST'])
def add_to_wishlist():
    payload, status = get_gateway().add(get_json_payload())
    return jsonify(payload), status


# ═══════════════════════════════════════════════════════════════════
#  2. REMOVE: exact variant, or every variant when variant_id is omitted
#     POST /api/wishlist/remove   { user_id, product_id, variant_id? }
# ═══════════════════════════════════════════════════════════════════
@api_bp.route('/wishlist/remove', methods=['POST'])
def remove_from_wishlist():
    payload, status = get_gateway().remove(get_json_payload())
    return jsonify(payload), status


# ═══════════════════════════════════════════════════════════════════
#  3. LIST: user's wishlist, most recent first, paginated
#     GET /api/wishlist/<user_id>?page=1&page_size=100
# ═══════════════════════════════════════════════════════════════════
@api_bp.route('/wishlist/<user_id>')
def get_wishlist(user_id):
    if user_id in MUTATION_PATHS:
        abort(405, valid_methods=['POST'])
    payload, status = get_gateway().list_for_user(user_id, request.args)
    return jsonify(payload), status


# ═══════════════════════════════════════════════════════════════════
#  4. CHECK: is a product (variant) in the user's wishlist
#     GET /api/wishlist/<user_id>/check?product_id=&variant_id=
# ═══════════════════════════════════════════════════════════════════
@api_bp.route('/wishlist/<user_id>/check')
def check_wishlist(user_id):
    payload, status = get_gateway().check(user_id, request.args)
    return jsonify(payload), status
