import json
import logging

from cmssync.cms.base import CmsAdapter
from cmssync.conf import get_setting, require_setting
from cmssync.jobs import EntityType
from cmssync.translation import normalize_id

logger = logging.getLogger(__name__)

API_VERSION = 'v2025-09-01'

DOCUMENT_TYPES = {
    EntityType.PRODUCT: 'vendureProduct',
    EntityType.PRODUCT_VARIANT: 'vendureProductVariant',
    EntityType.COLLECTION: 'vendureCollection',
}

FIND_QUERY = '*[_type == $type && vendureId in $ids]'


class SanityAdapter(CmsAdapter):
    """Sanity Content Lake: GROQ lookups and the mutate endpoint for writes."""

    platform = 'Sanity'
    default_rate_limit_delay = 0.02

    def __init__(self, project_id=None, api_key=None, dataset=None, rate_limiter=None):
        project_id = project_id or require_setting('SANITY_PROJECT_ID')
        api_key = api_key or get_setting('SANITY_API_KEY')
        if not api_key:
            logger.error("Sanity API key is not configured (CMS_SYNC['SANITY_API_KEY']).")
        self.dataset = dataset or get_setting('SANITY_DATASET')
        super().__init__(
            f'https://{project_id}.api.sanity.io/{API_VERSION}',
            {'Authorization': f'Bearer {api_key}', 'Content-Type': 'application/json'},
            rate_limiter,
        )

    def find_documents(self, entity_type, entity_ids) -> dict:
        # GROQ parameters are passed as JSON literals.
        params = {
            'query': FIND_QUERY,
            '$type': json.dumps(DOCUMENT_TYPES[entity_type]),
            '$ids': json.dumps([normalize_id(entity_id) for entity_id in entity_ids]),
        }
        response = self.client.get(f'data/query/{self.dataset}', params=params)
        return {str(doc['vendureId']): doc for doc in response.get('result') or []}

    def create_document(self, entity_type, payload):
        results = self._mutate({'create': payload}).get('results') or [{}]
        return results[0]

    def update_document(self, entity_type, document, payload):
        self._mutate({'patch': {'id': self.document_id(document), 'set': payload}})

    def delete_document(self, entity_type, document):
        self._mutate({'delete': {'id': self.document_id(document)}})

    def document_id(self, document):
        # Query results carry `_id`, mutation results carry `id`.
        return document.get('_id') or document.get('id')

    def build_payload(self, entity_type, entity_id, name, slug, language_code, relations):
        payload = {
            '_type': DOCUMENT_TYPES[entity_type],
            'vendureId': normalize_id(entity_id),
            'title': name,
            'slug': {'_type': 'slug', 'current': slug},
        }
        if entity_type == EntityType.PRODUCT:
            payload['vendureVariants'] = _references('variant', relations['variants'])
        elif entity_type == EntityType.PRODUCT_VARIANT:
            if relations['product']:
                payload['vendureProduct'] = {'_type': 'reference', '_ref': relations['product']}
            payload['vendureCollections'] = _references('collection', relations['collections'])
        else:
            payload['vendureProductVariants'] = _references('variant', relations['variants'])
        return payload

    def _mutate(self, mutation: dict) -> dict:
        return self.client.post(f'data/mutate/{self.dataset}', json={'mutations': [mutation]})


def _references(prefix: str, document_ids) -> list:
    return [
        {'_key': f'{prefix}-{document_id}', '_type': 'reference', '_ref': document_id}
        for document_id in document_ids
    ]
