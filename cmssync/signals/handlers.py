import logging

from django.dispatch import receiver

from cmssync.jobs import EntityType, OperationType, SyncJobData
from cmssync.signals import collection_event, product_event, variant_event
from cmssync.tasks import enqueue_sync_job

logger = logging.getLogger(__name__)


def _enqueue(entity_type: EntityType, entity_id, event_type: str) -> None:
    job = SyncJobData(entity_type, entity_id, OperationType.from_event(event_type))
    try:
        enqueue_sync_job(job)
    except Exception as exc:
        # Enqueue failures stay inside the receiver.
        logger.error(
            "Failed to queue %s sync for %s %s: %s",
            job.operation_type.value, entity_type.label, entity_id, exc,
        )


@receiver(product_event, dispatch_uid='cmssync_product_event')
def on_product_event(sender, event_type, product_id, **kwargs):
    _enqueue(EntityType.PRODUCT, product_id, event_type)


@receiver(variant_event, dispatch_uid='cmssync_variant_event')
def on_variant_event(sender, event_type, variant_ids, **kwargs):
    for variant_id in variant_ids:
        _enqueue(EntityType.PRODUCT_VARIANT, variant_id, event_type)


@receiver(collection_event, dispatch_uid='cmssync_collection_event')
def on_collection_event(sender, event_type, collection_id, **kwargs):
    _enqueue(EntityType.COLLECTION, collection_id, event_type)
