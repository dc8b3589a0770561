"""Error taxonomy shared by the store, the gateway and the routes.

Each error subclasses the builtin the routes would otherwise catch
(ValueError / LookupError / RuntimeError), so callers that only know the
builtins still handle them correctly.
"""

from __future__ import annotations


class WishlistError(Exception):
    category = 'wishlist_error'

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {'success': False, 'error': self.category, 'message': self.message}


class ValidationError(WishlistError, ValueError):
    """Missing or malformed identifier / parameter."""

    category = 'validation_error'


class NotFoundError(WishlistError, LookupError):
    category = 'not_found'


class StoreError(WishlistError, RuntimeError):
    """Storage fault. `transient` errors are safe to retry with backoff."""

    category = 'store_error'

    def __init__(self, message: str, *, transient: bool = False):
        super().__init__(message)
        self.transient = transient
