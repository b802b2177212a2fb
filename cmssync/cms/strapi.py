import logging

from cmssync.cms.base import CmsAdapter
from cmssync.conf import get_setting, require_setting
from cmssync.jobs import EntityType
from cmssync.translation import normalize_id

logger = logging.getLogger(__name__)

COLLECTIONS = {
    EntityType.PRODUCT: 'vendure-products',
    EntityType.PRODUCT_VARIANT: 'vendure-product-variants',
    EntityType.COLLECTION: 'vendure-collections',
}


class StrapiAdapter(CmsAdapter):
    """Strapi REST API (v4 and v5 response shapes)."""

    platform = 'Strapi'
    default_rate_limit_delay = 0.1

    def __init__(self, base_url=None, api_key=None, rate_limiter=None):
        base_url = base_url or require_setting('STRAPI_BASE_URL')
        api_key = api_key or get_setting('STRAPI_API_KEY')
        headers = {'Content-Type': 'application/json'}
        if api_key:
            headers['Authorization'] = f'Bearer {api_key}'
        else:
            logger.error("Strapi API key is not configured (CMS_SYNC['STRAPI_API_KEY']).")
        super().__init__(f"{base_url.rstrip('/')}/api", headers, rate_limiter)

    def find_documents(self, entity_type, entity_ids) -> dict:
        ids = [normalize_id(entity_id) for entity_id in entity_ids]
        if len(ids) == 1:
            params = {'filters[vendureId][$eq]': ids[0]}
        else:
            params = {f'filters[vendureId][$in][{n}]': value for n, value in enumerate(ids)}
        params['pagination[pageSize]'] = max(len(ids), 1)
        response = self.client.get(COLLECTIONS[entity_type], params=params)
        return {str(_attributes(doc)['vendureId']): doc for doc in response.get('data') or []}

    def create_document(self, entity_type, payload):
        return self.client.post(COLLECTIONS[entity_type], json={'data': payload}).get('data') or {}

    def update_document(self, entity_type, document, payload):
        self.client.put(f'{COLLECTIONS[entity_type]}/{self.document_id(document)}', json={'data': payload})

    def delete_document(self, entity_type, document):
        self.client.delete(f'{COLLECTIONS[entity_type]}/{self.document_id(document)}')

    def document_id(self, document):
        # v5 routes address documents by documentId, v4 by numeric id.
        return document.get('documentId') or document.get('id')

    def build_payload(self, entity_type, entity_id, name, slug, language_code, relations):
        payload = {
            'vendureId': normalize_id(entity_id),
            'name': name,
            'slug': slug,
        }
        if entity_type == EntityType.PRODUCT_VARIANT:
            payload['product'] = relations['product']
            payload['collections'] = relations['collections']
        else:
            payload['productVariants'] = relations['variants']
        return payload


def _attributes(document: dict) -> dict:
    # v4 nests fields under "attributes", v5 returns them flat.
    return document.get('attributes') or document
