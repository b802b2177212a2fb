import json
from urllib.parse import parse_qs, urlsplit

import pytest
import responses as responses_lib

from cmssync.catalog import Collection, Product, ProductVariant, Translation
from cmssync.cms.payload import PayloadAdapter
from cmssync.jobs import EntityType, OperationType, SyncOutcome

BASE_URL = 'http://payload.test/api'
PRODUCTS_URL = f'{BASE_URL}/vendure-product'
VARIANTS_URL = f'{BASE_URL}/vendure-product-variant'
COLLECTIONS_URL = f'{BASE_URL}/vendure-collection'

LAPTOP = Product(1, [Translation('en', 'Laptop', 'laptop')])
VARIANT = ProductVariant(11, 1, [Translation('en', 'Laptop 16GB')])
ELECTRONICS = Collection(5, [Translation('en', 'Electronics', 'electronics')])


@pytest.fixture()
def adapter():
    return PayloadAdapter()


def query_params(call):
    return parse_qs(urlsplit(call.request.url).query)


def body(call):
    return json.loads(call.request.body)


class TestUpsert:
    @responses_lib.activate
    def test_create_uses_catalog_id_as_document_id(self, adapter):
        responses_lib.add(responses_lib.GET, PRODUCTS_URL, json={'docs': []}, status=200)
        responses_lib.add(responses_lib.POST, PRODUCTS_URL, json={'doc': {'id': 1}}, status=201)

        outcome = adapter.sync_product(LAPTOP, OperationType.CREATE, 'en')

        assert outcome == SyncOutcome.CREATED
        assert query_params(responses_lib.calls[0])['where[id][equals]'] == ['1']
        assert body(responses_lib.calls[1]) == {
            'id': 1,
            'name': 'Laptop',
            'slug': 'laptop',
            'productVariants': [],
        }
        assert responses_lib.calls[1].request.headers['Authorization'] == 'users API-Key payload-key'

    @responses_lib.activate
    def test_existing_document_is_patched_without_id(self, adapter):
        responses_lib.add(responses_lib.GET, PRODUCTS_URL, json={'docs': [{'id': 1}]}, status=200)
        responses_lib.add(responses_lib.PATCH, f'{PRODUCTS_URL}/1', json={'doc': {'id': 1}}, status=200)

        outcome = adapter.sync_product(LAPTOP, OperationType.CREATE, 'en')

        assert outcome == SyncOutcome.UPDATED
        assert 'id' not in body(responses_lib.calls[1])

    @responses_lib.activate
    def test_collection_variant_lookup_uses_in_filter(self, adapter):
        variant_2 = ProductVariant(12, 1, [Translation('en', 'Laptop 32GB')])
        responses_lib.add(responses_lib.GET, VARIANTS_URL, json={'docs': [{'id': 12}, {'id': 11}]}, status=200)
        responses_lib.add(responses_lib.GET, COLLECTIONS_URL, json={'docs': []}, status=200)
        responses_lib.add(responses_lib.POST, COLLECTIONS_URL, json={'doc': {'id': 5}}, status=201)

        adapter.sync_collection(ELECTRONICS, OperationType.UPDATE, 'en', variants=[VARIANT, variant_2])

        assert query_params(responses_lib.calls[0])['where[id][in]'] == ['11,12']
        assert body(responses_lib.calls[2])['productVariants'] == [11, 12]

    @responses_lib.activate
    def test_variant_payload(self, adapter):
        responses_lib.add(responses_lib.GET, PRODUCTS_URL, json={'docs': [{'id': 1}]}, status=200)
        responses_lib.add(responses_lib.GET, COLLECTIONS_URL, json={'docs': []}, status=200)
        responses_lib.add(responses_lib.GET, VARIANTS_URL, json={'docs': []}, status=200)
        responses_lib.add(responses_lib.POST, VARIANTS_URL, json={'doc': {'id': 11}}, status=201)

        adapter.sync_product_variant(
            VARIANT, OperationType.CREATE, 'en', 'laptop-variant-11', collections=[ELECTRONICS],
        )

        assert body(responses_lib.calls[3]) == {
            'id': 11,
            'name': 'Laptop 16GB',
            'slug': 'laptop-variant-11',
            'product': 1,
            'collections': [],
        }


class TestDelete:
    @responses_lib.activate
    def test_delete_existing(self, adapter):
        responses_lib.add(responses_lib.GET, VARIANTS_URL, json={'docs': [{'id': 11}]}, status=200)
        responses_lib.add(responses_lib.DELETE, f'{VARIANTS_URL}/11', json={'doc': {'id': 11}}, status=200)

        assert adapter.delete(EntityType.PRODUCT_VARIANT, 11) == SyncOutcome.DELETED

    @responses_lib.activate
    def test_delete_missing_is_noop(self, adapter):
        responses_lib.add(responses_lib.GET, VARIANTS_URL, json={'docs': []}, status=200)

        assert adapter.delete(EntityType.PRODUCT_VARIANT, 11) == SyncOutcome.NOT_FOUND
        assert len(responses_lib.calls) == 1


class TestPagedLookups:
    @responses_lib.activate
    def test_reference_ids_split_into_pages_of_at_most_100(self, adapter):
        responses_lib.add(responses_lib.GET, VARIANTS_URL, json={'docs': [{'id': 42}]}, status=200)
        responses_lib.add(responses_lib.GET, VARIANTS_URL, json={'docs': [{'id': 101}]}, status=200)
        responses_lib.add(responses_lib.GET, VARIANTS_URL, json={'docs': []}, status=200)

        references = adapter.reference_ids(EntityType.PRODUCT_VARIANT, range(1, 251))

        assert references == [42, 101]
        assert len(responses_lib.calls) == 3
        pages = [query_params(call) for call in responses_lib.calls]
        assert [page['limit'] for page in pages] == [['100'], ['100'], ['50']]
        assert [len(page['where[id][in]'][0].split(',')) for page in pages] == [100, 100, 50]
