"""Request gateway between the HTTP routes and the wishlist store.

Every operation takes the raw request data (JSON body, query args or path
values), normalizes identifiers once, calls the store and returns a
`(payload, status)` pair. Errors from the store are mapped to status codes
here, so routes never need their own try/except.
"""

from __future__ import annotations

import logging

from wishlist_api.exceptions import NotFoundError, StoreError, ValidationError
from wishlist_api.helpers.normalize import (
    normalize_identifier,
    normalize_text,
    parse_positive_int,
    pick,
    require_identifier,
)
from wishlist_api.services.wishlist_service import (
    METADATA_FIELDS,
    Page,
    WishlistEntryInput,
    WishlistStore,
)


def _camel(field: str) -> str:
    head, *rest = field.split('_')
    return head + ''.join(part.title() for part in rest)


def _page_payload(page: Page) -> dict:
    return {
        'success': True,
        'items': [item.to_dict() for item in page.items],
        'total': page.total,
        'page': page.page,
        'page_size': page.page_size,
        'total_pages': page.total_pages,
    }


def _paging_args(data: dict) -> tuple[int | None, int | None]:
    page = parse_positive_int(pick(data, 'page'), 'page')
    page_size = parse_positive_int(pick(data, 'page_size', 'pageSize', 'limit'), 'page_size')
    return page, page_size


class WishlistGateway:
    def __init__(self, store: WishlistStore, logger: logging.Logger | None = None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def _handle(self, action: str, fn, *args) -> tuple[dict, int]:
        try:
            return fn(*args)
        except ValidationError as e:
            self.logger.info('%s rejected: %s', action, e.message)
            return e.to_dict(), 400
        except NotFoundError as e:
            return e.to_dict(), 404
        except StoreError as e:
            if e.transient:
                self.logger.warning('%s failed (transient): %s', action, e.message)
                return e.to_dict(), 503
            self.logger.error('%s failed: %s', action, e.message, exc_info=True)
            return e.to_dict(), 500

    # ── public operations ────────────────────────────────────────

    def add(self, data: dict) -> tuple[dict, int]:
        return self._handle('add', self._add, data)

    def remove(self, data: dict) -> tuple[dict, int]:
        return self._handle('remove', self._remove, data)

    def list_for_user(self, user_id, args: dict) -> tuple[dict, int]:
        return self._handle('list', self._list, user_id, args)

    def check(self, user_id, args: dict) -> tuple[dict, int]:
        return self._handle('check', self._check, user_id, args)

    # ── admin operations ─────────────────────────────────────────

    def browse(self, args: dict) -> tuple[dict, int]:
        return self._handle('browse', self._browse, args)

    def get_entry(self, entry_id: int) -> tuple[dict, int]:
        return self._handle('get_entry', self._get_entry, entry_id)

    def delete_by_id(self, entry_id: int) -> tuple[dict, int]:
        return self._handle('delete_by_id', self._delete_by_id, entry_id)

    # ── implementations ──────────────────────────────────────────

    def _add(self, data: dict) -> tuple[dict, int]:
        entry = WishlistEntryInput(
            user_id=require_identifier(pick(data, 'user_id', 'userId'), 'user_id'),
            product_id=require_identifier(pick(data, 'product_id', 'productId'), 'product_id'),
            variant_id=normalize_identifier(pick(data, 'variant_id', 'variantId'), 'variant_id'),
            **{field: normalize_text(pick(data, field, _camel(field)), field) for field in METADATA_FIELDS},
        )
        self.logger.info(
            'Add request: user=%s product=%s variant=%s',
            entry.user_id, entry.product_id, entry.variant_id or '',
        )

        result = self.store.upsert(entry)
        payload = {
            'success': True,
            'id': result.id,
            'created': result.created,
            'message': 'Added to wishlist' if result.created else 'Wishlist item refreshed',
        }
        return payload, 201 if result.created else 200

    def _remove(self, data: dict) -> tuple[dict, int]:
        user_id = require_identifier(pick(data, 'user_id', 'userId'), 'user_id')
        product_id = require_identifier(pick(data, 'product_id', 'productId'), 'product_id')
        # None (absent or null) removes every variant of the product
        variant_id = normalize_identifier(pick(data, 'variant_id', 'variantId'), 'variant_id')
        self.logger.info(
            'Remove request: user=%s product=%s variant=%s',
            user_id, product_id, '<any>' if variant_id is None else variant_id,
        )

        removed = self.store.remove(user_id, product_id, variant_id)
        if removed == 0:
            self.logger.info('Remove matched no rows for user=%s product=%s', user_id, product_id)
        return {'success': True, 'removed_count': removed}, 200

    def _list(self, user_id, args: dict) -> tuple[dict, int]:
        user_id = require_identifier(user_id, 'user_id')
        page, page_size = _paging_args(args)

        result = self.store.list_by_user(user_id, page, page_size)
        self.logger.info('Found %d of %d wishlist items for user %s', len(result.items), result.total, user_id)
        return _page_payload(result), 200

    def _check(self, user_id, args: dict) -> tuple[dict, int]:
        user_id = require_identifier(user_id, 'user_id')
        product_id = require_identifier(pick(args, 'product_id', 'productId'), 'product_id')
        variant_id = normalize_identifier(pick(args, 'variant_id', 'variantId'), 'variant_id')

        found = self.store.exists(user_id, product_id, variant_id)
        return {'success': True, 'in_wishlist': found}, 200

    def _browse(self, args: dict) -> tuple[dict, int]:
        page, page_size = _paging_args(args)
        user_id = normalize_identifier(pick(args, 'user_id', 'userId'), 'user_id') or None
        product_id = normalize_identifier(pick(args, 'product_id', 'productId'), 'product_id') or None

        result = self.store.browse(page, page_size, user_id=user_id, product_id=product_id)
        return _page_payload(result), 200

    def _get_entry(self, entry_id: int) -> tuple[dict, int]:
        entry = self.store.get_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f'Wishlist entry {entry_id} not found')
        return {'success': True, 'item': entry.to_dict()}, 200

    def _delete_by_id(self, entry_id: int) -> tuple[dict, int]:
        if not self.store.delete_by_id(entry_id):
            raise NotFoundError(f'Wishlist entry {entry_id} not found')
        self.logger.info('Admin deleted wishlist entry %s', entry_id)
        return {'success': True, 'removed': True}, 200
