import json
from urllib.parse import parse_qs, urlsplit

import pytest
import responses as responses_lib

from cmssync.catalog import Collection, Product, ProductVariant, Translation
from cmssync.cms.storyblok import StoryblokAdapter
from cmssync.jobs import EntityType, OperationType, SyncOutcome

STORIES_URL = 'https://mapi.storyblok.com/v1/spaces/98765/stories'

LAPTOP = Product(1, [Translation('en', 'Laptop', 'laptop')])
VARIANT = ProductVariant(11, 1, [Translation('en', 'Laptop 16GB')])
VARIANT_2 = ProductVariant(12, 1, [Translation('en', 'Laptop 32GB')])
ELECTRONICS = Collection(5, [Translation('en', 'Electronics', 'electronics')])


@pytest.fixture()
def adapter():
    return StoryblokAdapter()


def query_params(call):
    return parse_qs(urlsplit(call.request.url).query)


def body(call):
    return json.loads(call.request.body)


def add_stories(stories):
    responses_lib.add(responses_lib.GET, STORIES_URL, json={'stories': stories}, status=200)


class TestUpsert:
    @responses_lib.activate
    def test_create_publishes_new_story(self, adapter):
        add_stories([])
        responses_lib.add(responses_lib.POST, STORIES_URL, json={'story': {'id': 501, 'uuid': 'u-1'}}, status=201)

        outcome = adapter.sync_product(LAPTOP, OperationType.CREATE, 'en')

        assert outcome == SyncOutcome.CREATED
        assert body(responses_lib.calls[1]) == {
            'story': {
                'name': 'Laptop',
                'slug': 'laptop',
                'content': {'component': 'vendure_product', 'vendureId': '1', 'variants': []},
            },
            'publish': 1,
        }

    @responses_lib.activate
    def test_lookup_filters_by_vendure_id_and_component(self, adapter):
        add_stories([])
        responses_lib.add(responses_lib.POST, STORIES_URL, json={'story': {'id': 501}}, status=201)

        adapter.sync_product(LAPTOP, OperationType.CREATE, 'en')

        params = query_params(responses_lib.calls[0])
        assert params['filter_query[vendureId][in]'] == ['1']
        assert params['filter_query[component][in]'] == ['vendure_product']
        assert responses_lib.calls[0].request.headers['Authorization'] == 'storyblok-token'

    @responses_lib.activate
    def test_existing_story_is_updated(self, adapter):
        add_stories([{'id': 501, 'uuid': 'u-1', 'slug': 'laptop'}])
        responses_lib.add(responses_lib.PUT, f'{STORIES_URL}/501', json={'story': {'id': 501}}, status=200)

        outcome = adapter.sync_product(LAPTOP, OperationType.UPDATE, 'en')

        assert outcome == SyncOutcome.UPDATED
        assert body(responses_lib.calls[1])['story']['name'] == 'Laptop'

    @responses_lib.activate
    def test_references_use_story_uuids(self, adapter):
        add_stories([{'id': 611, 'uuid': 'u-11'}])
        add_stories([])
        add_stories([])
        responses_lib.add(responses_lib.POST, STORIES_URL, json={'story': {'id': 501}}, status=201)

        adapter.sync_product(LAPTOP, OperationType.UPDATE, 'en', variants=[VARIANT, VARIANT_2])

        assert body(responses_lib.calls[3])['story']['content']['variants'] == ['u-11']

    @responses_lib.activate
    def test_variant_content(self, adapter):
        add_stories([{'id': 501, 'uuid': 'u-1'}])
        add_stories([{'id': 701, 'uuid': 'u-5'}])
        add_stories([])
        responses_lib.add(responses_lib.POST, STORIES_URL, json={'story': {'id': 611}}, status=201)

        adapter.sync_product_variant(
            VARIANT, OperationType.CREATE, 'en', 'laptop-variant-11', collections=[ELECTRONICS],
        )

        story = body(responses_lib.calls[3])['story']
        assert story['slug'] == 'laptop-variant-11'
        assert story['content'] == {
            'component': 'vendure_product_variant',
            'vendureId': '11',
            'parentProduct': ['u-1'],
            'collections': ['u-5'],
        }


class TestDelete:
    @responses_lib.activate
    def test_delete_existing(self, adapter):
        add_stories([{'id': 701, 'uuid': 'u-5'}])
        responses_lib.add(responses_lib.DELETE, f'{STORIES_URL}/701', json={}, status=200)

        assert adapter.delete(EntityType.COLLECTION, 5) == SyncOutcome.DELETED

    @responses_lib.activate
    def test_delete_missing_is_noop(self, adapter):
        add_stories([])

        assert adapter.delete(EntityType.COLLECTION, 5) == SyncOutcome.NOT_FOUND
        assert len(responses_lib.calls) == 1
