import logging

import requests
from celery import shared_task
from celery.schedules import crontab

from cmssync.conf import get_setting
from cmssync.exceptions import CmsApiError, EntityNotFound
from cmssync.jobs import EntityType, SyncJobData, SyncResponse
from cmssync.reconciler import BulkReconciler
from cmssync.service import get_sync_service

logger = logging.getLogger(__name__)

QUEUES = {
    EntityType.PRODUCT: 'cms-product-sync',
    EntityType.PRODUCT_VARIANT: 'cms-variant-sync',
    EntityType.COLLECTION: 'cms-collection-sync',
}


def _run_job(task, job_data: dict) -> dict:
    """
    Run one queued sync job.

    Remote failures are retried on the same queue with retry_count + 1, up to
    RETRY_ATTEMPTS times, RETRY_DELAY seconds apart. A catalog entity that no
    longer exists is reported and dropped.
    """
    job = SyncJobData.from_dict(job_data)
    logger.info(
        "Processing %s job for %s %s (retry %d).",
        job.operation_type.value, job.entity_type.label, job.entity_id, job.retry_count,
    )

    try:
        response = get_sync_service().sync(job)
    except EntityNotFound as exc:
        logger.error("%s – dropping %s job.", exc, job.operation_type.value)
        return SyncResponse(success=False, message=str(exc)).as_dict()
    except (CmsApiError, requests.RequestException) as exc:
        max_retries = get_setting('RETRY_ATTEMPTS')
        logger.warning(
            "Sync of %s %s failed (retry %d/%d): %s",
            job.entity_type.label, job.entity_id, job.retry_count, max_retries, exc,
        )
        raise task.retry(
            exc=exc,
            args=[job.next_retry().as_dict()],
            countdown=get_setting('RETRY_DELAY'),
            max_retries=max_retries,
        )

    logger.info("%s", response.message)
    return response.as_dict()


@shared_task(bind=True, name='cmssync.sync_product', queue=QUEUES[EntityType.PRODUCT])
def sync_product_task(self, job_data):
    return _run_job(self, job_data)


@shared_task(bind=True, name='cmssync.sync_variant', queue=QUEUES[EntityType.PRODUCT_VARIANT])
def sync_variant_task(self, job_data):
    return _run_job(self, job_data)


@shared_task(bind=True, name='cmssync.sync_collection', queue=QUEUES[EntityType.COLLECTION])
def sync_collection_task(self, job_data):
    return _run_job(self, job_data)


def enqueue_sync_job(job: SyncJobData):
    """Put a job on the queue of its entity kind."""
    tasks = {
        EntityType.PRODUCT: sync_product_task,
        EntityType.PRODUCT_VARIANT: sync_variant_task,
        EntityType.COLLECTION: sync_collection_task,
    }
    queue = QUEUES[job.entity_type]
    result = tasks[job.entity_type].apply_async(args=[job.as_dict()], queue=queue)
    logger.info(
        "Queued %s job for %s %s on %s.",
        job.operation_type.value, job.entity_type.label, job.entity_id, queue,
    )
    return result


@shared_task(bind=True, name='cmssync.sync_all_entities')
def sync_all_entities_task(self, entity_type):
    """Reconcile every entity of one kind with the CMS."""
    summary = BulkReconciler().reconcile(entity_type)
    return summary.as_dict()


@shared_task(bind=True, name='cmssync.sync_all_entity_types')
def sync_all_entity_types_task(self):
    """Reconcile products, variants and collections, in that order."""
    logger.info("Starting scheduled CMS sync of all entity types.")
    summaries = [summary.as_dict() for summary in BulkReconciler().reconcile_all()]
    logger.info(
        "Scheduled CMS sync complete. %s",
        '; '.join(summary['message'] for summary in summaries),
    )
    return summaries


def beat_schedule() -> dict:
    """
    Celery beat entries for the nightly full sync (weekdays at 00:00).

    Merge into the host's schedule:
        app.conf.beat_schedule.update(beat_schedule())
    """
    if not get_setting('ENABLE_SCHEDULED_SYNC'):
        return {}
    return {
        'cmssync-sync-all-entity-types': {
            'task': 'cmssync.sync_all_entity_types',
            'schedule': crontab(minute=0, hour=0, day_of_week='mon-fri'),
        },
    }
