"""
cmssync - keeps catalog entities in step with a headless CMS.

Catalog changes are announced through the signals in ``cmssync.signals``,
queued as Celery jobs and pushed to the configured CMS adapter.
"""

from cmssync.exceptions import CmsApiError, CmsSyncError, EntityNotFound, TranslationMissing

__all__ = ['CmsApiError', 'CmsSyncError', 'EntityNotFound', 'TranslationMissing']
