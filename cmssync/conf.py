"""
cmssync settings.

Supports two formats (dict takes priority):

    # Option 1: Dict
    CMS_SYNC = {
        'ADAPTER': 'cmssync.cms.sanity.SanityAdapter',
        'CATALOG_BACKEND': 'shop.catalog.ShopCatalog',
        'SANITY_PROJECT_ID': os.environ['SANITY_PROJECT_ID'],
        'SANITY_API_KEY': os.environ['SANITY_API_KEY'],
    }

    # Option 2: Flat
    CMS_SYNC_ADAPTER = 'cmssync.cms.strapi.StrapiAdapter'
    CMS_SYNC_STRAPI_BASE_URL = 'http://localhost:1337'
"""

import threading

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string


# ── Defaults ──

DEFAULTS = {
    'ADAPTER': None,
    'CATALOG_BACKEND': 'cmssync.catalog.memory.InMemoryCatalog',
    'DEFAULT_LANGUAGE_CODE': 'en',
    # Celery queue retries for event-driven jobs
    'RETRY_ATTEMPTS': 3,
    'RETRY_DELAY': 5,
    # Bulk reconciliation
    'MAX_ATTEMPTS': 10,
    'BATCH_SIZE': 1,
    'BACKOFF_BASE': 1.0,
    'BACKOFF_CAP': 10.0,
    # HTTP
    'RATE_LIMIT_DELAY': None,
    'REQUEST_TIMEOUT': 30,
    'ENABLE_SCHEDULED_SYNC': True,
    # Platforms
    'SANITY_PROJECT_ID': None,
    'SANITY_API_KEY': None,
    'SANITY_DATASET': 'production',
    'STRAPI_BASE_URL': 'http://localhost:1337',
    'STRAPI_API_KEY': None,
    'CONTENTFUL_SPACE_ID': None,
    'CONTENTFUL_API_KEY': None,
    'CONTENTFUL_ENVIRONMENT': 'master',
    'STORYBLOK_SPACE_ID': None,
    'STORYBLOK_API_KEY': None,
    'PAYLOAD_BASE_URL': 'http://localhost:3000',
    'PAYLOAD_API_KEY': None,
}


# ── Accessors ──

_sentinel = object()


def get_setting(name, default=_sentinel):
    """
    Get a cmssync setting.

    Looks up in order:
    1. CMS_SYNC dict (e.g. CMS_SYNC = {"ADAPTER": "..."})
    2. Flat setting (e.g. CMS_SYNC_ADAPTER = "...")
    3. DEFAULTS
    """
    cms_dict = getattr(settings, 'CMS_SYNC', {})
    if name in cms_dict:
        return cms_dict[name]

    flat_value = getattr(settings, f'CMS_SYNC_{name}', _sentinel)
    if flat_value is not _sentinel:
        return flat_value

    if default is not _sentinel:
        return default

    return DEFAULTS.get(name)


def require_setting(name):
    """Like get_setting, but an empty value is a configuration error."""
    value = get_setting(name)
    if not value:
        raise ImproperlyConfigured(f'CMS_SYNC["{name}"] must be set.')
    return value


_lock = threading.Lock()
_adapter_instance = None
_catalog_instance = None


def get_adapter():
    """Return the configured CMS adapter instance (created once per process)."""
    global _adapter_instance

    if _adapter_instance is None:
        with _lock:
            if _adapter_instance is None:  # double-checked
                _adapter_instance = import_string(require_setting('ADAPTER'))()

    return _adapter_instance


def get_catalog_backend():
    """Return the configured catalog backend instance (created once per process)."""
    global _catalog_instance

    if _catalog_instance is None:
        with _lock:
            if _catalog_instance is None:
                _catalog_instance = import_string(require_setting('CATALOG_BACKEND'))()

    return _catalog_instance


def reset() -> None:
    """Drop cached adapter and catalog instances (for tests)."""
    global _adapter_instance, _catalog_instance
    _adapter_instance = None
    _catalog_instance = None
