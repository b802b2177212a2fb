"""
Admin operations for triggering syncs by hand.

These return plain dicts so they can back any admin surface (a view, an RPC
endpoint or the cms_sync management command). They never raise for an
unknown entity type or a failed remote call; the failure is in the result.
"""

import logging

from cmssync.exceptions import CmsSyncError
from cmssync.jobs import EntityType, OperationType, SyncJobData
from cmssync.reconciler import BulkReconciler
from cmssync.service import get_sync_service

logger = logging.getLogger(__name__)


def _entity_type(value):
    try:
        return EntityType(value)
    except ValueError:
        return None


def _unsupported(entity_type) -> str:
    return f'Unsupported entity type: {entity_type}'


def sync_entity_to_cms(entity_id, entity_type) -> dict:
    """Sync one entity right away, bypassing the queue."""
    kind = _entity_type(entity_type)
    if kind is None:
        return {
            'success': False,
            'message': _unsupported(entity_type),
            'entityId': entity_id,
            'entityType': str(entity_type),
        }

    job = SyncJobData(kind, entity_id, OperationType.UPDATE)
    try:
        response = get_sync_service().sync(job)
    except CmsSyncError as exc:
        logger.error("Manual sync of %s %s failed: %s", kind.label, entity_id, exc)
        success, message = False, str(exc)
    except Exception as exc:
        logger.exception("Manual sync of %s %s failed", kind.label, entity_id)
        success, message = False, str(exc)
    else:
        success, message = response.success, response.message

    return {
        'success': success,
        'message': message,
        'entityId': entity_id,
        'entityType': kind.value,
    }


def sync_all_entities_to_cms(entity_type) -> dict:
    """Reconcile every entity of one kind and return the summary."""
    kind = _entity_type(entity_type)
    if kind is None:
        return {
            'success': False,
            'totalEntities': 0,
            'successCount': 0,
            'errorCount': 0,
            'message': _unsupported(entity_type),
            'entityType': str(entity_type),
            'errors': [],
        }
    return BulkReconciler().reconcile(kind).as_dict()


def sync_product_to_cms(product_id) -> dict:
    return sync_entity_to_cms(product_id, EntityType.PRODUCT)


def sync_all_products_to_cms() -> dict:
    return sync_all_entities_to_cms(EntityType.PRODUCT)


def get_cms_sync_status() -> str:
    return 'CMS Sync service is ready'
