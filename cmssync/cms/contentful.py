import logging
import threading
from typing import Optional

import requests

from cmssync.cms.base import CmsAdapter
from cmssync.conf import get_setting, require_setting
from cmssync.exceptions import CmsApiError
from cmssync.jobs import EntityType

logger = logging.getLogger(__name__)

BASE_URL = 'https://api.contentful.com/spaces'
CONTENT_TYPE = 'application/vnd.contentful.management.v1+json'

CONTENT_TYPES = {
    EntityType.PRODUCT: 'vendureProduct',
    EntityType.PRODUCT_VARIANT: 'vendureProductVariant',
    EntityType.COLLECTION: 'vendureCollection',
}

DEFAULT_LOCALE = 'en-US'

# Used until (or unless) the space's own locales are known.
FALLBACK_LOCALES = {
    'en': 'en-US',
    'de': 'de-DE',
    'es': 'es-ES',
    'fr': 'fr-FR',
    'it': 'it-IT',
    'nl': 'nl-NL',
    'pt': 'pt-BR',
    'ja': 'ja-JP',
    'zh': 'zh-CN',
}


class ContentfulAdapter(CmsAdapter):
    """
    Contentful Content Management API.

    Entries are versioned: every update sends the current version and is
    followed by a publish; published entries are unpublished before deletion.
    """

    platform = 'Contentful'
    default_rate_limit_delay = 0.05

    def __init__(self, space_id=None, api_key=None, environment=None, rate_limiter=None):
        space_id = space_id or require_setting('CONTENTFUL_SPACE_ID')
        api_key = api_key or get_setting('CONTENTFUL_API_KEY')
        if not api_key:
            logger.error("Contentful API key is not configured (CMS_SYNC['CONTENTFUL_API_KEY']).")
        environment = environment or get_setting('CONTENTFUL_ENVIRONMENT')
        super().__init__(
            f'{BASE_URL}/{space_id}/environments/{environment}',
            {'Authorization': f'Bearer {api_key}', 'Content-Type': CONTENT_TYPE},
            rate_limiter,
        )
        self._locales = None
        self._default_locale = DEFAULT_LOCALE
        self._locales_lock = threading.Lock()

    # ── Locales ──

    def locale_for(self, language_code: str) -> str:
        """Map a catalog language code ("en") onto a Contentful locale ("en-US")."""
        locales = self._space_locales()
        prefix = language_code.lower()
        for code in locales:
            if code.lower().startswith(prefix):
                return code
        if locales:
            return self._default_locale
        return FALLBACK_LOCALES.get(prefix, self._default_locale)

    def _space_locales(self) -> list:
        if self._locales is None:
            with self._locales_lock:
                if self._locales is None:
                    self._locales = self._fetch_locales()
        return self._locales

    def _fetch_locales(self) -> list:
        try:
            items = self.client.get('locales').get('items') or []
        except (CmsApiError, requests.RequestException) as exc:
            logger.warning("Could not fetch Contentful locales, using fallback mapping: %s", exc)
            return []
        for item in items:
            if item.get('default'):
                self._default_locale = item['code']
        return [item['code'] for item in items]

    # ── Documents ──

    def find_documents(self, entity_type, entity_ids) -> dict:
        response = self.client.get('entries', params={
            'content_type': CONTENT_TYPES[entity_type],
            'fields.vendureId[in]': ','.join(str(entity_id) for entity_id in entity_ids),
            'limit': max(len(entity_ids), 1),
        })
        documents = {}
        for entry in response.get('items') or []:
            vendure_id = _field_value(entry, 'vendureId')
            if vendure_id is not None:
                documents[str(vendure_id)] = entry
        return documents

    def create_document(self, entity_type, payload):
        entry = self.client.post(
            'entries', json=payload,
            headers={'X-Contentful-Content-Type': CONTENT_TYPES[entity_type]},
        )
        self._publish(entry)
        return entry

    def update_document(self, entity_type, document, payload):
        entry = self.client.put(
            f'entries/{self.document_id(document)}', json=payload,
            headers={'X-Contentful-Version': str(document['sys']['version'])},
        )
        self._publish(entry)

    def delete_document(self, entity_type, document):
        entry_id = self.document_id(document)
        if document['sys'].get('publishedVersion'):
            self.client.delete(f'entries/{entry_id}/published')
        self.client.delete(f'entries/{entry_id}')

    def document_id(self, document):
        return (document.get('sys') or {}).get('id')

    def build_payload(self, entity_type, entity_id, name, slug, language_code, relations):
        locale = self.locale_for(language_code)
        fields = {
            'name': {locale: name},
            'slug': {locale: slug},
            'vendureId': {locale: str(entity_id)},
        }
        if entity_type == EntityType.PRODUCT_VARIANT:
            if relations['product']:
                fields['parentProduct'] = {locale: _link(relations['product'])}
            if relations['collections']:
                fields['collections'] = {locale: [_link(i) for i in relations['collections']]}
        elif relations['variants']:
            fields['variants'] = {locale: [_link(i) for i in relations['variants']]}
        return {'fields': fields}

    def _publish(self, entry: dict) -> None:
        sys = entry['sys']
        self.client.put(
            f"entries/{sys['id']}/published",
            headers={'X-Contentful-Version': str(sys['version'])},
        )


def _link(entry_id: str) -> dict:
    return {'sys': {'type': 'Link', 'linkType': 'Entry', 'id': entry_id}}


def _field_value(entry: dict, name: str) -> Optional[str]:
    """Management API fields are keyed by locale; any locale's value identifies the entry."""
    value = (entry.get('fields') or {}).get(name)
    if isinstance(value, dict):
        return next(iter(value.values()), None)
    return value
