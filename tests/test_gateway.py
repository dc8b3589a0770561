"""
Tests for WishlistGateway: normalization, wishlist behavior and status mapping
"""
from unittest.mock import MagicMock

import pytest

from wishlist_api.exceptions import StoreError
from wishlist_api.services.gateway import WishlistGateway
from wishlist_api.services.wishlist_service import WishlistStore


@pytest.fixture
def gateway(memory_store):
    return WishlistGateway(memory_store)


class TestAdd:

    def test_first_add_creates(self, gateway):
        payload, status = gateway.add({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1'})

        assert status == 201
        assert payload['success'] is True
        assert payload['created'] is True
        assert payload['id'] == 1

    def test_repeat_add_refreshes_single_row(self, gateway, memory_store):
        first, _ = gateway.add({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1'})
        second, status = gateway.add({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1'})

        assert status == 200
        assert second['created'] is False
        assert second['id'] == first['id']
        assert len(memory_store.rows) == 1

    def test_metadata_is_refreshed(self, gateway, memory_store):
        gateway.add({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1', 'product_title': 'Shirt'})
        gateway.add({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1', 'product_title': 'Shirt v2'})

        (row,) = memory_store.rows.values()
        assert row.product_title == 'Shirt v2'

    def test_missing_variant_stored_as_empty_string(self, gateway, memory_store):
        gateway.add({'user_id': '42', 'product_id': 'p1'})

        (row,) = memory_store.rows.values()
        assert row.variant_id == ''

    def test_numeric_ids_normalize_to_strings(self, gateway, memory_store):
        gateway.add({'user_id': 42, 'product_id': 7955249512620, 'variant_id': 43671.0})
        payload, _ = gateway.add({'user_id': '42', 'product_id': '7955249512620', 'variant_id': '43671'})

        assert payload['created'] is False
        assert list(memory_store.rows) == [('42', '7955249512620', '43671')]

    def test_camel_case_keys(self, gateway, memory_store):
        gateway.add({'userId': '42', 'productId': 'p1', 'variantId': 'v1',
                     'productTitle': 'Shirt', 'variantImage': 'https://cdn.example/v1.jpg'})

        (row,) = memory_store.rows.values()
        assert row.product_title == 'Shirt'
        assert row.variant_image == 'https://cdn.example/v1.jpg'

    def test_missing_product_is_rejected_without_write(self, gateway, memory_store):
        payload, status = gateway.add({'user_id': '42'})

        assert status == 400
        assert payload == {'success': False, 'error': 'validation_error', 'message': 'Missing product_id'}
        assert memory_store.rows == {}

    def test_bad_identifier_type(self, gateway):
        payload, status = gateway.add({'user_id': True, 'product_id': 'p1'})

        assert status == 400
        assert payload['error'] == 'validation_error'


class TestRemove:

    def test_add_then_remove(self, gateway, memory_store):
        gateway.add({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1'})

        payload, status = gateway.remove({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1'})

        assert status == 200
        assert payload == {'success': True, 'removed_count': 1}
        assert memory_store.exists('42', 'p1', 'v1') is False

    def test_remove_missing_is_zero(self, gateway):
        payload, status = gateway.remove({'user_id': '42', 'product_id': 'nope', 'variant_id': 'v9'})

        assert status == 200
        assert payload['removed_count'] == 0

    def test_omitted_variant_removes_all_variants(self, gateway, memory_store):
        gateway.add({'user_id': '42', 'product_id': 'p1'})
        gateway.add({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1'})
        gateway.add({'user_id': '42', 'product_id': 'p2'})

        payload, _ = gateway.remove({'user_id': '42', 'product_id': 'p1'})

        assert payload['removed_count'] == 2
        assert list(memory_store.rows) == [('42', 'p2', '')]

    def test_null_variant_is_treated_as_omitted(self, gateway):
        gateway.add({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1'})

        payload, _ = gateway.remove({'user_id': '42', 'product_id': 'p1', 'variant_id': None})

        assert payload['removed_count'] == 1

    def test_empty_variant_matches_only_base_product(self, gateway, memory_store):
        gateway.add({'user_id': '42', 'product_id': 'p1'})
        gateway.add({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1'})

        payload, _ = gateway.remove({'user_id': '42', 'product_id': 'p1', 'variant_id': ''})

        assert payload['removed_count'] == 1
        assert list(memory_store.rows) == [('42', 'p1', 'v1')]

    def test_requires_user(self, gateway):
        payload, status = gateway.remove({'product_id': 'p1'})

        assert status == 400
        assert payload['message'] == 'Missing user_id'


class TestList:

    def test_most_recent_first_and_readd_moves_to_front(self, gateway):
        for pid in ('p1', 'p2', 'p3'):
            gateway.add({'user_id': '42', 'product_id': pid})
        gateway.add({'user_id': '42', 'product_id': 'p1'})

        payload, status = gateway.list_for_user('42', {})

        assert status == 200
        assert [item['product_id'] for item in payload['items']] == ['p1', 'p3', 'p2']
        assert payload['total'] == 3

    def test_second_page(self, gateway):
        for i in range(1, 26):
            gateway.add({'user_id': '42', 'product_id': f'p{i}'})

        payload, _ = gateway.list_for_user('42', {'page': '2', 'pageSize': '10'})

        # newest first: p25..p16 on page 1, p15..p6 on page 2
        assert [item['product_id'] for item in payload['items']] == [f'p{i}' for i in range(15, 5, -1)]
        assert payload['total'] == 25
        assert payload['page'] == 2
        assert payload['page_size'] == 10
        assert payload['total_pages'] == 3

    def test_only_own_entries(self, gateway):
        gateway.add({'user_id': '42', 'product_id': 'p1'})
        gateway.add({'user_id': '43', 'product_id': 'p1'})

        payload, _ = gateway.list_for_user(42, {})

        assert [item['user_id'] for item in payload['items']] == ['42']

    def test_invalid_page(self, gateway):
        payload, status = gateway.list_for_user('42', {'page': 'zero'})

        assert status == 400
        assert 'page' in payload['message']


class TestCheck:

    def test_in_wishlist(self, gateway):
        gateway.add({'user_id': '42', 'product_id': 'p1', 'variant_id': 'v1'})

        assert gateway.check('42', {'product_id': 'p1', 'variant_id': 'v1'})[0]['in_wishlist'] is True
        assert gateway.check('42', {'product_id': 'p1'})[0]['in_wishlist'] is False

    def test_requires_product(self, gateway):
        _, status = gateway.check('42', {})
        assert status == 400


class TestAdmin:

    def test_browse_filters(self, gateway):
        gateway.add({'user_id': '42', 'product_id': 'p1'})
        gateway.add({'user_id': '43', 'product_id': 'p1'})
        gateway.add({'user_id': '43', 'product_id': 'p2'})

        everything, _ = gateway.browse({})
        by_product, _ = gateway.browse({'product_id': 'p1'})
        by_both, _ = gateway.browse({'user_id': 43, 'product_id': 'p2'})

        assert everything['total'] == 3
        assert by_product['total'] == 2
        assert [i['product_id'] for i in by_both['items']] == ['p2']

    def test_delete_by_id(self, gateway, memory_store):
        created, _ = gateway.add({'user_id': '42', 'product_id': 'p1'})

        payload, status = gateway.delete_by_id(created['id'])

        assert status == 200
        assert payload == {'success': True, 'removed': True}
        assert memory_store.rows == {}

    def test_delete_unknown_id(self, gateway):
        payload, status = gateway.delete_by_id(999)

        assert status == 404
        assert payload['error'] == 'not_found'

    def test_get_entry(self, gateway):
        created, _ = gateway.add({'user_id': '42', 'product_id': 'p1', 'product_handle': 'classic-tee'})

        payload, status = gateway.get_entry(created['id'])

        assert status == 200
        assert payload['item']['product_handle'] == 'classic-tee'


class TestStoreErrors:

    @pytest.fixture
    def failing_store(self):
        return MagicMock(spec=WishlistStore)

    def test_transient_maps_to_503(self, failing_store):
        failing_store.upsert.side_effect = StoreError('Database temporarily unavailable', transient=True)
        logger = MagicMock()

        payload, status = WishlistGateway(failing_store, logger).add({'user_id': '42', 'product_id': 'p1'})

        assert status == 503
        assert payload == {'success': False, 'error': 'store_error',
                           'message': 'Database temporarily unavailable'}
        logger.warning.assert_called_once()

    def test_fatal_maps_to_500_and_is_logged(self, failing_store):
        failing_store.list_by_user.side_effect = StoreError('Database error')
        logger = MagicMock()

        payload, status = WishlistGateway(failing_store, logger).list_for_user('42', {})

        assert status == 500
        assert 'Traceback' not in payload['message']
        logger.error.assert_called_once()
