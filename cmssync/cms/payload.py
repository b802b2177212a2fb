import logging

from cmssync.cms.base import CmsAdapter
from cmssync.conf import get_setting, require_setting
from cmssync.jobs import EntityType
from cmssync.translation import normalize_id

logger = logging.getLogger(__name__)

COLLECTIONS = {
    EntityType.PRODUCT: 'vendure-product',
    EntityType.PRODUCT_VARIANT: 'vendure-product-variant',
    EntityType.COLLECTION: 'vendure-collection',
}


class PayloadAdapter(CmsAdapter):
    """
    Payload CMS REST API.

    Documents reuse the catalog id as their own id, so lookups and
    references need no translation between the two.
    """

    platform = 'Payload'
    default_rate_limit_delay = 0.1

    def __init__(self, base_url=None, api_key=None, rate_limiter=None):
        base_url = base_url or require_setting('PAYLOAD_BASE_URL')
        api_key = api_key or get_setting('PAYLOAD_API_KEY')
        headers = {'Content-Type': 'application/json'}
        if api_key:
            headers['Authorization'] = f'users API-Key {api_key}'
        else:
            logger.error("Payload API key is not configured (CMS_SYNC['PAYLOAD_API_KEY']).")
        super().__init__(f"{base_url.rstrip('/')}/api", headers, rate_limiter)

    def find_documents(self, entity_type, entity_ids) -> dict:
        ids = [str(entity_id) for entity_id in entity_ids]
        if len(ids) == 1:
            params = {'where[id][equals]': ids[0]}
        else:
            params = {'where[id][in]': ','.join(ids)}
        params.update({'limit': max(len(ids), 1), 'depth': 0})
        response = self.client.get(COLLECTIONS[entity_type], params=params)
        return {str(doc['id']): doc for doc in response.get('docs') or []}

    def create_document(self, entity_type, payload):
        return self.client.post(COLLECTIONS[entity_type], json=payload).get('doc') or {}

    def update_document(self, entity_type, document, payload):
        changes = {key: value for key, value in payload.items() if key != 'id'}
        self.client.patch(f'{COLLECTIONS[entity_type]}/{self.document_id(document)}', json=changes)

    def delete_document(self, entity_type, document):
        self.client.delete(f'{COLLECTIONS[entity_type]}/{self.document_id(document)}')

    def document_id(self, document):
        return document.get('id')

    def build_payload(self, entity_type, entity_id, name, slug, language_code, relations):
        payload = {
            'id': normalize_id(entity_id),
            'name': name,
            'slug': slug,
        }
        if entity_type == EntityType.PRODUCT_VARIANT:
            payload['product'] = relations['product']
            payload['collections'] = relations['collections']
        else:
            payload['productVariants'] = relations['variants']
        return payload
