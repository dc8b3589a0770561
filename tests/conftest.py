"""
Pytest fixtures for the wishlist API tests
"""
from datetime import datetime, timedelta
from itertools import count
from unittest.mock import MagicMock

import pytest

from wishlist_api import create_app
from wishlist_api.exceptions import ValidationError
from wishlist_api.helpers.db import Database, ExecResult
from wishlist_api.services.wishlist_service import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    METADATA_FIELDS,
    Page,
    UpsertResult,
    WishlistEntry,
    WishlistStore,
)

ADMIN_TOKEN = 'test-admin-token'


class InMemoryStore:
    """Dict-backed stand-in for WishlistStore with the same key semantics."""

    def __init__(self):
        self.rows = {}
        self._ids = count(1)
        self._clock = count(1)
        self._epoch = datetime(2026, 1, 1)

    def _now(self):
        # strictly increasing so ordering never ties
        return self._epoch + timedelta(microseconds=next(self._clock))

    @staticmethod
    def _require(value, field):
        if not value:
            raise ValidationError(f'Missing {field}')

    def upsert(self, entry):
        self._require(entry.user_id, 'user_id')
        self._require(entry.product_id, 'product_id')
        key = (entry.user_id, entry.product_id, entry.variant_id or '')
        meta = {field: getattr(entry, field) for field in METADATA_FIELDS}

        existing = self.rows.get(key)
        if existing:
            self.rows[key] = WishlistEntry(id=existing.id, user_id=key[0], product_id=key[1],
                                           variant_id=key[2], created_at=self._now(), **meta)
            return UpsertResult(id=existing.id, created=False)

        new_id = next(self._ids)
        self.rows[key] = WishlistEntry(id=new_id, user_id=key[0], product_id=key[1],
                                       variant_id=key[2], created_at=self._now(), **meta)
        return UpsertResult(id=new_id, created=True)

    def remove(self, user_id, product_id, variant_id=None):
        self._require(user_id, 'user_id')
        self._require(product_id, 'product_id')
        doomed = [k for k in self.rows
                  if k[0] == user_id and k[1] == product_id and (variant_id is None or k[2] == variant_id)]
        for k in doomed:
            del self.rows[k]
        return len(doomed)

    def exists(self, user_id, product_id, variant_id=None):
        self._require(user_id, 'user_id')
        self._require(product_id, 'product_id')
        return (user_id, product_id, variant_id or '') in self.rows

    def _page(self, rows, page, page_size):
        page = page or 1
        page_size = min(page_size or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
        ordered = sorted(rows, key=lambda r: (r.created_at, r.id), reverse=True)
        start = (page - 1) * page_size
        return Page(items=ordered[start:start + page_size], total=len(ordered), page=page, page_size=page_size)

    def list_by_user(self, user_id, page=None, page_size=None):
        self._require(user_id, 'user_id')
        return self._page([r for r in self.rows.values() if r.user_id == user_id], page, page_size)

    def browse(self, page=None, page_size=None, *, user_id=None, product_id=None):
        rows = [r for r in self.rows.values()
                if (not user_id or r.user_id == user_id) and (not product_id or r.product_id == product_id)]
        return self._page(rows, page, page_size)

    def get_by_id(self, entry_id):
        return next((r for r in self.rows.values() if r.id == entry_id), None)

    def delete_by_id(self, entry_id):
        for key, row in list(self.rows.items()):
            if row.id == entry_id:
                del self.rows[key]
                return True
        return False


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def app(memory_store):
    _app = create_app({'TESTING': True, 'ADMIN_TOKEN': ADMIN_TOKEN}, store=memory_store)
    return _app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin_headers():
    return {'X-Admin-Token': ADMIN_TOKEN}


@pytest.fixture
def mock_db():
    """A Database double whose execute/query results are set per test."""
    db = MagicMock(spec=Database)
    db.execute.return_value = ExecResult(lastrowid=1, rowcount=1)
    db.query.return_value = []
    return db


@pytest.fixture
def store(mock_db):
    return WishlistStore(mock_db)
