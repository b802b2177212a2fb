import logging

from cmssync.cms.base import CmsAdapter
from cmssync.conf import get_setting, require_setting
from cmssync.jobs import EntityType

logger = logging.getLogger(__name__)

BASE_URL = 'https://mapi.storyblok.com/v1/spaces'

COMPONENTS = {
    EntityType.PRODUCT: 'vendure_product',
    EntityType.PRODUCT_VARIANT: 'vendure_product_variant',
    EntityType.COLLECTION: 'vendure_collection',
}


class StoryblokAdapter(CmsAdapter):
    """
    Storyblok Management API.

    Story listings come back without their content, so each catalog id is
    looked up with its own filter query. Relations point at story uuids.
    """

    platform = 'Storyblok'
    default_rate_limit_delay = 0.2

    def __init__(self, space_id=None, api_key=None, rate_limiter=None):
        space_id = space_id or require_setting('STORYBLOK_SPACE_ID')
        api_key = api_key or get_setting('STORYBLOK_API_KEY')
        if not api_key:
            logger.error("Storyblok API key is not configured (CMS_SYNC['STORYBLOK_API_KEY']).")
        super().__init__(
            f'{BASE_URL}/{space_id}',
            {'Authorization': api_key or '', 'Content-Type': 'application/json'},
            rate_limiter,
        )

    def find_documents(self, entity_type, entity_ids) -> dict:
        documents = {}
        for entity_id in entity_ids:
            response = self.client.get('stories', params={
                'filter_query[vendureId][in]': str(entity_id),
                'filter_query[component][in]': COMPONENTS[entity_type],
            })
            stories = response.get('stories') or []
            if stories:
                documents[str(entity_id)] = stories[0]
        return documents

    def create_document(self, entity_type, payload):
        return self.client.post('stories', json=payload).get('story') or {}

    def update_document(self, entity_type, document, payload):
        self.client.put(f'stories/{self.document_id(document)}', json=payload)

    def delete_document(self, entity_type, document):
        self.client.delete(f'stories/{self.document_id(document)}')

    def document_id(self, document):
        return document.get('id')

    def reference_id(self, document):
        return document.get('uuid')

    def build_payload(self, entity_type, entity_id, name, slug, language_code, relations):
        content = {
            'component': COMPONENTS[entity_type],
            'vendureId': str(entity_id),
        }
        if entity_type == EntityType.PRODUCT_VARIANT:
            content['parentProduct'] = [relations['product']] if relations['product'] else []
            content['collections'] = relations['collections']
        else:
            content['variants'] = relations['variants']
        return {
            'story': {'name': name, 'slug': slug, 'content': content},
            'publish': 1,
        }
