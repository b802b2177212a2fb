import logging
from typing import Callable, Optional

from cmssync.cms.client import CmsClient
from cmssync.conf import get_setting
from cmssync.exceptions import TranslationMissing
from cmssync.jobs import EntityType, OperationType, SyncOutcome
from cmssync.ratelimit import RateLimiter
from cmssync.translation import get_slug, require_translation

logger = logging.getLogger(__name__)


class CmsAdapter:
    """
    Base class for the per-platform CMS adapters.

    Routing lives here: create and update both look the remote document up
    first and take the update path when it exists, the create path when it
    does not; delete is a logged no-op when nothing is found. A missing
    translation skips the entity without touching the CMS.

    Subclasses describe one platform:

        find_documents(entity_type, entity_ids) -> {str(entity_id): document}
        create_document(entity_type, payload) -> document
        update_document(entity_type, document, payload)
        delete_document(entity_type, document)
        document_id(document) -> remote id
        build_payload(entity_type, entity_id, name, slug, language_code, relations) -> payload

    `relations` holds remote reference ids: "variants" for products and
    collections, "product" (single id or None) and "collections" for variants.
    """

    platform = 'CMS'
    default_rate_limit_delay = 0.1
    # Most ids a single find_documents call is given.
    lookup_page_size = 100

    def __init__(self, base_url: str, headers: dict, rate_limiter: Optional[RateLimiter] = None):
        if rate_limiter is None:
            rate_limiter = RateLimiter(self.rate_limit_delay())
        self.client = CmsClient(self.platform, base_url, headers, rate_limiter)

    @classmethod
    def rate_limit_delay(cls) -> float:
        delay = get_setting('RATE_LIMIT_DELAY')
        return cls.default_rate_limit_delay if delay is None else float(delay)

    # ── Sync contract ──

    def sync_product(self, product, operation_type, language_code: str, variants=()) -> SyncOutcome:
        def payload():
            translation = require_translation(EntityType.PRODUCT, product, language_code)
            relations = {
                'variants': self.reference_ids(EntityType.PRODUCT_VARIANT, [v.id for v in variants]),
            }
            return self._build(EntityType.PRODUCT, product.id, translation.name,
                               get_slug(product.translations, language_code), language_code, relations)

        return self._sync(EntityType.PRODUCT, product.id, operation_type, payload)

    def sync_product_variant(self, variant, operation_type, language_code: str,
                             variant_slug: str, collections=()) -> SyncOutcome:
        def payload():
            translation = require_translation(EntityType.PRODUCT_VARIANT, variant, language_code)
            parent = self.reference_ids(EntityType.PRODUCT, [variant.product_id])
            relations = {
                'product': parent[0] if parent else None,
                'collections': self.reference_ids(EntityType.COLLECTION, [c.id for c in collections]),
            }
            return self._build(EntityType.PRODUCT_VARIANT, variant.id, translation.name,
                               variant_slug, language_code, relations)

        return self._sync(EntityType.PRODUCT_VARIANT, variant.id, operation_type, payload)

    def sync_collection(self, collection, operation_type, language_code: str, variants=()) -> SyncOutcome:
        def payload():
            translation = require_translation(EntityType.COLLECTION, collection, language_code)
            relations = {
                'variants': self.reference_ids(EntityType.PRODUCT_VARIANT, [v.id for v in variants]),
            }
            return self._build(EntityType.COLLECTION, collection.id, translation.name,
                               get_slug(collection.translations, language_code), language_code, relations)

        return self._sync(EntityType.COLLECTION, collection.id, operation_type, payload)

    def delete(self, entity_type: EntityType, entity_id) -> SyncOutcome:
        """Remove the remote document of an entity; only the id is needed."""
        document = self.find_document(entity_type, entity_id)
        if document is None:
            logger.warning(
                "Document not found in %s for %s %s, nothing to delete.",
                self.platform, entity_type.label, entity_id,
            )
            return SyncOutcome.NOT_FOUND

        self.delete_document(entity_type, document)
        logger.info(
            "Deleted document for %s %s (%s ID: %s).",
            entity_type.label, entity_id, self.platform, self.document_id(document),
        )
        return SyncOutcome.DELETED

    # ── Lookups ──

    def find_document(self, entity_type: EntityType, entity_id) -> Optional[dict]:
        return self.find_documents(entity_type, [entity_id]).get(str(entity_id))

    def reference_ids(self, entity_type: EntityType, entity_ids) -> list:
        """Resolve catalog ids to remote reference ids, keeping catalog order."""
        entity_ids = list(entity_ids)
        documents = {}
        for start in range(0, len(entity_ids), self.lookup_page_size):
            documents.update(self.find_documents(entity_type, entity_ids[start:start + self.lookup_page_size]))
        return [
            self.reference_id(documents[str(entity_id)])
            for entity_id in entity_ids
            if str(entity_id) in documents
        ]

    def reference_id(self, document: dict):
        return self.document_id(document)

    # ── Platform hooks ──

    def find_documents(self, entity_type: EntityType, entity_ids) -> dict:
        raise NotImplementedError

    def create_document(self, entity_type: EntityType, payload: dict) -> dict:
        raise NotImplementedError

    def update_document(self, entity_type: EntityType, document: dict, payload: dict) -> None:
        raise NotImplementedError

    def delete_document(self, entity_type: EntityType, document: dict) -> None:
        raise NotImplementedError

    def document_id(self, document: dict):
        raise NotImplementedError

    def build_payload(self, entity_type: EntityType, entity_id, name: str, slug: str,
                      language_code: str, relations: dict) -> dict:
        raise NotImplementedError

    # ── Internals ──

    def _build(self, entity_type, entity_id, name, slug, language_code, relations) -> dict:
        if not slug:
            slug = f"{entity_type.label.replace(' ', '-')}-{entity_id}"
            logger.warning("%s %s has no slug – using %r.", entity_type.value, entity_id, slug)
        return self.build_payload(entity_type, entity_id, name, slug, language_code, relations)

    def _sync(self, entity_type: EntityType, entity_id, operation_type,
              build_payload: Callable[[], dict]) -> SyncOutcome:
        operation_type = OperationType(operation_type)
        logger.info(
            "Syncing %s %s (%s) to %s.",
            entity_type.label, entity_id, operation_type.value, self.platform,
        )
        try:
            if operation_type == OperationType.DELETE:
                outcome = self.delete(entity_type, entity_id)
            else:
                outcome = self._upsert(entity_type, entity_id, operation_type, build_payload)
        except TranslationMissing as exc:
            logger.warning("%s – skipping %s sync.", exc, self.platform)
            return SyncOutcome.SKIPPED
        except Exception as exc:
            logger.error(
                "Failed to sync %s %s (%s) to %s: %s",
                entity_type.label, entity_id, operation_type.value, self.platform, exc,
            )
            raise

        logger.info(
            "Successfully synced %s %s (%s) to %s: %s.",
            entity_type.label, entity_id, operation_type.value, self.platform, outcome.value,
        )
        return outcome

    def _upsert(self, entity_type, entity_id, operation_type, build_payload) -> SyncOutcome:
        payload = build_payload()
        document = self.find_document(entity_type, entity_id)

        if document is None:
            if operation_type == OperationType.UPDATE:
                logger.warning(
                    "Document not found in %s for %s %s. Creating new document instead.",
                    self.platform, entity_type.label, entity_id,
                )
            created = self.create_document(entity_type, payload)
            logger.info(
                "Created document for %s %s with %s ID: %s.",
                entity_type.label, entity_id, self.platform, self.document_id(created or {}),
            )
            return SyncOutcome.CREATED

        if operation_type == OperationType.CREATE:
            logger.info(
                "Document for %s %s already exists in %s – updating instead.",
                entity_type.label, entity_id, self.platform,
            )
        self.update_document(entity_type, document, payload)
        logger.info(
            "Updated document for %s %s (%s ID: %s).",
            entity_type.label, entity_id, self.platform, self.document_id(document),
        )
        return SyncOutcome.UPDATED
