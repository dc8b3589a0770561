"""Wishlist API application factory."""

from __future__ import annotations

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from wishlist_api.config import Config
from wishlist_api.exceptions import StoreError, WishlistError
from wishlist_api.helpers.db import Database
from wishlist_api.services.gateway import WishlistGateway
from wishlist_api.services.wishlist_service import WishlistStore


def create_app(config: dict | None = None, *, database: Database | None = None, store=None) -> Flask:
    """Build the app.

    Pass `database` to reuse an already opened pool, or `store` to skip the
    pool entirely (tests). Otherwise a pool is opened from the config.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)
    app.logger.setLevel(app.config['LOG_LEVEL'])

    if store is None:
        if database is None:
            database = Database.from_config(app.config).open()
        store = WishlistStore(database)
    if database is not None:
        database.init_app(app)

    app.extensions['wishlist_store'] = store
    app.extensions['wishlist_gateway'] = WishlistGateway(store, app.logger)

    from wishlist_api.routes.admin import admin_bp
    from wishlist_api.routes.api import api_bp
    from wishlist_api.routes.health import health_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(api_bp)
    app.register_blueprint(admin_bp)

    register_error_handlers(app)
    return app


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(WishlistError)
    def handle_wishlist_error(e):
        if isinstance(e, StoreError):
            status = 503 if e.transient else 500
        else:
            status = {'validation_error': 400, 'not_found': 404}.get(e.category, 500)
        return jsonify(e.to_dict()), status

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        response = jsonify({'success': False, 'error': 'http_error', 'message': e.description})
        # keep Allow on 405s
        for key, value in e.get_headers():
            if key.lower() != 'content-type':
                response.headers[key] = value
        return response, e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        app.logger.exception('Unhandled error')
        return jsonify({'success': False, 'error': 'internal_error', 'message': 'Server error'}), 500
