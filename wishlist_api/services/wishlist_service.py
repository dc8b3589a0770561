"""Wishlist domain operations.

This module contains DB access and business rules for wishlist behavior.
Routes should remain thin and only handle HTTP parsing/serialization.

An entry is identified by (user_id, product_id, variant_id). A missing
variant is stored as '' so the unique key compares with plain equality.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime

from wishlist_api.exceptions import ValidationError
from wishlist_api.helpers.db import Database

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 500

METADATA_FIELDS = (
    'product_title',
    'product_handle',
    'product_image',
    'variant_title',
    'variant_image',
)

COLUMNS = ('id', 'user_id', 'product_id', 'variant_id', *METADATA_FIELDS, 'created_at')
SELECT_COLUMNS = ', '.join(COLUMNS)


@dataclass(frozen=True)
class WishlistEntryInput:
    user_id: str
    product_id: str
    variant_id: str | None = None
    product_title: str | None = None
    product_handle: str | None = None
    product_image: str | None = None
    variant_title: str | None = None
    variant_image: str | None = None


@dataclass(frozen=True)
class WishlistEntry:
    id: int
    user_id: str
    product_id: str
    variant_id: str
    product_title: str | None
    product_handle: str | None
    product_image: str | None
    variant_title: str | None
    variant_image: str | None
    created_at: datetime | None

    @classmethod
    def from_row(cls, row: dict) -> 'WishlistEntry':
        return cls(**{col: row.get(col) for col in COLUMNS})

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.created_at is not None:
            data['created_at'] = self.created_at.isoformat()
        return data


@dataclass(frozen=True)
class UpsertResult:
    id: int
    created: bool


@dataclass(frozen=True)
class Page:
    items: list[WishlistEntry]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return max(1, (self.total + self.page_size - 1) // self.page_size)


def _require(value: str | None, field: str) -> str:
    if not value:
        raise ValidationError(f'Missing {field}')
    return value


def _paging(page: int | None, page_size: int | None) -> tuple[int, int]:
    page = 1 if page is None else page
    page_size = DEFAULT_PAGE_SIZE if page_size is None else page_size
    if page < 1:
        raise ValidationError('page must be >= 1')
    if page_size < 1:
        raise ValidationError('page_size must be >= 1')
    return page, min(page_size, MAX_PAGE_SIZE)


class WishlistStore:
    """Sole owner of the `wishlist` table."""

    def __init__(self, db: Database):
        self.db = db

    def upsert(self, entry: WishlistEntryInput) -> UpsertResult:
        """Insert the entry, or refresh metadata and timestamp if the key exists.

        One statement, so two concurrent adds of the same key cannot both
        insert. `id = LAST_INSERT_ID(id)` makes the cursor report the id of
        the existing row on the update branch.
        """
        user_id = _require(entry.user_id, 'user_id')
        product_id = _require(entry.product_id, 'product_id')
        variant_id = entry.variant_id or ''

        result = self.db.execute(
            '''INSERT INTO wishlist
                   (user_id, product_id, variant_id, product_title, product_handle,
                    product_image, variant_title, variant_image, created_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s, %s, CURRENT_TIMESTAMP(6))
               ON DUPLICATE KEY UPDATE
                   id = LAST_INSERT_ID(id),
                   product_title = VALUES(product_title),
                   product_handle = VALUES(product_handle),
                   product_image = VALUES(product_image),
                   variant_title = VALUES(variant_title),
                   variant_image = VALUES(variant_image),
                   created_at = CURRENT_TIMESTAMP(6)''',
            (
                user_id,
                product_id,
                variant_id,
                entry.product_title,
                entry.product_handle,
                entry.product_image,
                entry.variant_title,
                entry.variant_image,
            ),
        )
        # MySQL reports 1 affected row for an insert, 2 for an update.
        return UpsertResult(id=result.lastrowid, created=result.rowcount == 1)

    def remove(self, user_id: str, product_id: str, variant_id: str | None = None) -> int:
        """Delete matching rows and return how many went.

        variant_id=None matches every variant of the product; any string,
        including '', matches that exact variant only.
        """
        user_id = _require(user_id, 'user_id')
        product_id = _require(product_id, 'product_id')

        sql = 'DELETE FROM wishlist WHERE user_id = %s AND product_id = %s'
        params: tuple = (user_id, product_id)
        if variant_id is not None:
            sql += ' AND variant_id = %s'
            params += (variant_id,)

        return self.db.execute(sql, params).rowcount

    def exists(self, user_id: str, product_id: str, variant_id: str | None = None) -> bool:
        user_id = _require(user_id, 'user_id')
        product_id = _require(product_id, 'product_id')
        row = self.db.query(
            '''SELECT 1 AS found FROM wishlist
               WHERE user_id = %s AND product_id = %s AND variant_id = %s
               LIMIT 1''',
            (user_id, product_id, variant_id or ''),
            one=True,
        )
        return row is not None

    def list_by_user(self, user_id: str, page: int | None = None, page_size: int | None = None) -> Page:
        """Entries for one user, most recently touched first."""
        user_id = _require(user_id, 'user_id')
        return self._page('user_id = %s', (user_id,), page, page_size)

    def browse(
        self,
        page: int | None = None,
        page_size: int | None = None,
        *,
        user_id: str | None = None,
        product_id: str | None = None,
    ) -> Page:
        """Admin view over every row, optionally filtered by exact user/product."""
        clauses = []
        params: tuple = ()
        if user_id:
            clauses.append('user_id = %s')
            params += (user_id,)
        if product_id:
            clauses.append('product_id = %s')
            params += (product_id,)
        where = ' AND '.join(clauses) if clauses else '1 = 1'
        return self._page(where, params, page, page_size)

    def _page(self, where: str, params: tuple, page: int | None, page_size: int | None) -> Page:
        page, page_size = _paging(page, page_size)

        total_row = self.db.query(f'SELECT COUNT(*) AS total FROM wishlist WHERE {where}', params, one=True)
        total = int(total_row['total']) if total_row else 0

        offset = (page - 1) * page_size
        rows = self.db.query(
            f'''SELECT {SELECT_COLUMNS}
                FROM wishlist
                WHERE {where}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s''',
            params + (page_size, offset),
        )
        return Page(
            items=[WishlistEntry.from_row(r) for r in rows or []],
            total=total,
            page=page,
            page_size=page_size,
        )

    def get_by_id(self, entry_id: int) -> WishlistEntry | None:
        row = self.db.query(f'SELECT {SELECT_COLUMNS} FROM wishlist WHERE id = %s', (entry_id,), one=True)
        return WishlistEntry.from_row(row) if row else None

    def delete_by_id(self, entry_id: int) -> bool:
        return self.db.execute('DELETE FROM wishlist WHERE id = %s', (entry_id,)).rowcount > 0
