import json
from urllib.parse import parse_qs, urlsplit

import pytest
import responses as responses_lib

from cmssync.catalog import Collection, Product, ProductVariant, Translation
from cmssync.cms.strapi import StrapiAdapter
from cmssync.jobs import EntityType, OperationType, SyncOutcome

BASE_URL = 'http://strapi.test/api'
PRODUCTS_URL = f'{BASE_URL}/vendure-products'
VARIANTS_URL = f'{BASE_URL}/vendure-product-variants'
COLLECTIONS_URL = f'{BASE_URL}/vendure-collections'

LAPTOP = Product(1, [Translation('en', 'Laptop', 'laptop')])
VARIANT = ProductVariant(11, 1, [Translation('en', 'Laptop 16GB')])
VARIANT_2 = ProductVariant(12, 1, [Translation('en', 'Laptop 32GB')])
ELECTRONICS = Collection(5, [Translation('en', 'Electronics', 'electronics')])


@pytest.fixture()
def adapter():
    return StrapiAdapter()


def query_params(call):
    return parse_qs(urlsplit(call.request.url).query)


def body(call):
    return json.loads(call.request.body)


# ---------------------------------------------------------------------------
# Create / update routing
# ---------------------------------------------------------------------------

class TestUpsert:
    @responses_lib.activate
    def test_create_new_product(self, adapter):
        responses_lib.add(responses_lib.GET, PRODUCTS_URL, json={'data': []}, status=200)
        responses_lib.add(responses_lib.POST, PRODUCTS_URL, json={'data': {'documentId': 'p1'}}, status=201)

        outcome = adapter.sync_product(LAPTOP, OperationType.CREATE, 'en')

        assert outcome == SyncOutcome.CREATED
        assert query_params(responses_lib.calls[0])['filters[vendureId][$eq]'] == ['1']
        assert body(responses_lib.calls[1]) == {'data': {
            'vendureId': 1,
            'name': 'Laptop',
            'slug': 'laptop',
            'productVariants': [],
        }}
        assert responses_lib.calls[1].request.headers['Authorization'] == 'Bearer strapi-token'

    @responses_lib.activate
    def test_existing_document_is_updated_by_document_id(self, adapter):
        responses_lib.add(
            responses_lib.GET, PRODUCTS_URL,
            json={'data': [{'id': 3, 'documentId': 'p1', 'vendureId': 1}]}, status=200,
        )
        responses_lib.add(responses_lib.PUT, f'{PRODUCTS_URL}/p1', json={'data': {}}, status=200)

        outcome = adapter.sync_product(LAPTOP, OperationType.CREATE, 'en')

        assert outcome == SyncOutcome.UPDATED
        assert responses_lib.calls[1].request.method == 'PUT'
        assert body(responses_lib.calls[1])['data']['name'] == 'Laptop'

    @responses_lib.activate
    def test_v4_attributes_response_is_understood(self, adapter):
        responses_lib.add(
            responses_lib.GET, PRODUCTS_URL,
            json={'data': [{'id': 3, 'attributes': {'vendureId': 1}}]}, status=200,
        )
        responses_lib.add(responses_lib.PUT, f'{PRODUCTS_URL}/3', json={'data': {}}, status=200)

        assert adapter.sync_product(LAPTOP, OperationType.UPDATE, 'en') == SyncOutcome.UPDATED

    @responses_lib.activate
    def test_product_variant_references_are_batched_with_in_filter(self, adapter):
        responses_lib.add(
            responses_lib.GET, VARIANTS_URL,
            json={'data': [
                {'documentId': 'v12', 'vendureId': 12},
                {'documentId': 'v11', 'vendureId': 11},
            ]},
            status=200,
        )
        responses_lib.add(responses_lib.GET, PRODUCTS_URL, json={'data': []}, status=200)
        responses_lib.add(responses_lib.POST, PRODUCTS_URL, json={'data': {}}, status=201)

        adapter.sync_product(LAPTOP, OperationType.UPDATE, 'en', variants=[VARIANT, VARIANT_2])

        params = query_params(responses_lib.calls[0])
        assert params['filters[vendureId][$in][0]'] == ['11']
        assert params['filters[vendureId][$in][1]'] == ['12']
        assert body(responses_lib.calls[2])['data']['productVariants'] == ['v11', 'v12']

    @responses_lib.activate
    def test_variant_payload(self, adapter):
        responses_lib.add(responses_lib.GET, PRODUCTS_URL, json={'data': [{'documentId': 'p1', 'vendureId': 1}]})
        responses_lib.add(responses_lib.GET, COLLECTIONS_URL, json={'data': [{'documentId': 'c5', 'vendureId': 5}]})
        responses_lib.add(responses_lib.GET, VARIANTS_URL, json={'data': []})
        responses_lib.add(responses_lib.POST, VARIANTS_URL, json={'data': {'documentId': 'v11'}}, status=201)

        adapter.sync_product_variant(
            VARIANT, OperationType.CREATE, 'en', 'laptop-variant-11', collections=[ELECTRONICS],
        )

        assert body(responses_lib.calls[3])['data'] == {
            'vendureId': 11,
            'name': 'Laptop 16GB',
            'slug': 'laptop-variant-11',
            'product': 'p1',
            'collections': ['c5'],
        }


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

class TestDelete:
    @responses_lib.activate
    def test_delete_existing(self, adapter):
        responses_lib.add(
            responses_lib.GET, COLLECTIONS_URL,
            json={'data': [{'documentId': 'c5', 'vendureId': 5}]}, status=200,
        )
        responses_lib.add(responses_lib.DELETE, f'{COLLECTIONS_URL}/c5', status=204)

        assert adapter.delete(EntityType.COLLECTION, 5) == SyncOutcome.DELETED
        assert responses_lib.calls[1].request.method == 'DELETE'

    @responses_lib.activate
    def test_delete_missing_is_noop(self, adapter):
        responses_lib.add(responses_lib.GET, COLLECTIONS_URL, json={'data': []}, status=200)

        assert adapter.delete(EntityType.COLLECTION, 5) == SyncOutcome.NOT_FOUND
        assert len(responses_lib.calls) == 1


class TestConfiguration:
    def test_base_url_from_settings(self):
        assert StrapiAdapter().client.base_url == 'http://strapi.test/api'

    def test_constructor_arguments_override_settings(self):
        adapter = StrapiAdapter(base_url='http://other:1337/', api_key='k')
        assert adapter.client.base_url == 'http://other:1337/api'

    def test_platform_default_rate_limit(self, settings):
        settings.CMS_SYNC = {**settings.CMS_SYNC, 'RATE_LIMIT_DELAY': None}
        assert StrapiAdapter().client.rate_limiter.delay == 0.1


# ---------------------------------------------------------------------------
# Paged reference lookups
# ---------------------------------------------------------------------------

class TestPagedLookups:
    @responses_lib.activate
    def test_reference_ids_split_into_pages_of_at_most_100(self, adapter):
        responses_lib.add(responses_lib.GET, VARIANTS_URL, status=200, json={
            'data': [{'documentId': 'v1', 'vendureId': 1}, {'documentId': 'v100', 'vendureId': 100}],
        })
        responses_lib.add(responses_lib.GET, VARIANTS_URL, json={'data': []}, status=200)
        responses_lib.add(responses_lib.GET, VARIANTS_URL, status=200, json={
            'data': [{'documentId': 'v250', 'vendureId': 250}],
        })

        references = adapter.reference_ids(EntityType.PRODUCT_VARIANT, range(1, 251))

        assert references == ['v1', 'v100', 'v250']
        assert len(responses_lib.calls) == 3
        pages = [query_params(call) for call in responses_lib.calls]
        assert [page['pagination[pageSize]'] for page in pages] == [['100'], ['100'], ['50']]
        assert [sum(key.startswith('filters[vendureId][$in]') for key in page) for page in pages] == [100, 100, 50]
        assert pages[1]['filters[vendureId][$in][0]'] == ['101']
