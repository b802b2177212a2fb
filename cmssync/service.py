import logging
from typing import Optional

from cmssync.conf import get_adapter, get_catalog_backend
from cmssync.exceptions import CmsSyncError, EntityNotFound
from cmssync.jobs import EntityType, OperationType, SyncJobData, SyncOutcome, SyncResponse
from cmssync.translation import build_variant_slug, get_slug

logger = logging.getLogger(__name__)


class CmsSyncService:
    """
    Runs one sync job: re-reads the entity from the catalog, collects its
    relations and hands everything to the CMS adapter.

    Failures are raised, never folded into the response, so the queue and
    the reconciler can decide whether to try again.
    """

    def __init__(self, adapter=None, catalog=None):
        self.adapter = adapter if adapter is not None else get_adapter()
        self._catalog = catalog

    @property
    def catalog(self):
        if self._catalog is None:
            self._catalog = get_catalog_backend()
        return self._catalog

    def sync(self, job: SyncJobData) -> SyncResponse:
        handlers = {
            EntityType.PRODUCT: self.sync_product_to_cms,
            EntityType.PRODUCT_VARIANT: self.sync_variant_to_cms,
            EntityType.COLLECTION: self.sync_collection_to_cms,
        }
        handler = handlers.get(job.entity_type)
        if handler is None:
            raise CmsSyncError('UNSUPPORTED_ENTITY_TYPE', entity_type=job.entity_type)
        return handler(job)

    def sync_product_to_cms(self, job: SyncJobData) -> SyncResponse:
        if job.operation_type == OperationType.DELETE:
            return self._delete(job)

        product = self._load(job)
        language_code = self.catalog.default_language_code()
        variants = self.catalog.variants_for_product(product.id)
        outcome = self.adapter.sync_product(product, job.operation_type, language_code, variants)
        return self._response(job, outcome, language_code)

    def sync_variant_to_cms(self, job: SyncJobData) -> SyncResponse:
        if job.operation_type == OperationType.DELETE:
            return self._delete(job)

        variant = self._load(job)
        language_code = self.catalog.default_language_code()
        product = variant.product or self.catalog.get(EntityType.PRODUCT, variant.product_id)
        product_slug = get_slug(product.translations, language_code) if product else None
        variant_slug = build_variant_slug(product_slug, variant.id)
        collections = self.catalog.collections_for_variant(variant.id)
        outcome = self.adapter.sync_product_variant(
            variant, job.operation_type, language_code, variant_slug, collections,
        )
        return self._response(job, outcome, language_code)

    def sync_collection_to_cms(self, job: SyncJobData) -> SyncResponse:
        if job.operation_type == OperationType.DELETE:
            return self._delete(job)

        collection = self._load(job)
        language_code = self.catalog.default_language_code()
        variants = self.catalog.variants_for_collection(collection.id)
        outcome = self.adapter.sync_collection(collection, job.operation_type, language_code, variants)
        return self._response(job, outcome, language_code)

    def _load(self, job: SyncJobData):
        entity = self.catalog.get(job.entity_type, job.entity_id)
        if entity is None:
            raise EntityNotFound(job.entity_type.value, job.entity_id)
        return entity

    def _delete(self, job: SyncJobData) -> SyncResponse:
        # The entity is usually gone from the catalog by now; its id is enough.
        outcome = self.adapter.delete(job.entity_type, job.entity_id)
        return self._response(job, outcome)

    @staticmethod
    def _response(job: SyncJobData, outcome: SyncOutcome,
                  language_code: Optional[str] = None) -> SyncResponse:
        subject = f'{job.entity_type.value} {job.entity_id}'
        if outcome == SyncOutcome.SKIPPED:
            message = f'{subject} skipped: no translation for language {language_code}'
        elif outcome == SyncOutcome.NOT_FOUND:
            message = f'{subject} not found in CMS, nothing to delete'
        else:
            message = f'{subject} {job.operation_type.value} synced successfully ({outcome.value})'
        return SyncResponse(success=True, message=message, outcome=outcome)


def get_sync_service() -> CmsSyncService:
    return CmsSyncService()
