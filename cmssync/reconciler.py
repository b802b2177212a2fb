"""
Bulk reconciliation: re-sync every entity of a kind with retry and backoff.

Each entity becomes a ReconcileItem moving through

    pending -> in_flight -> succeeded
    in_flight -> failed_retryable -> pending   (re-queued at the tail)
    in_flight -> failed_permanent              (attempts == max_attempts)

Failed items wait min(BACKOFF_BASE * 2**(attempts - 1), BACKOFF_CAP) seconds
before their next attempt; other ready items are processed meanwhile.
"""

import logging
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from django.core.exceptions import ImproperlyConfigured

from cmssync.conf import get_setting
from cmssync.jobs import EntityType, OperationType, SyncJobData
from cmssync.service import get_sync_service

logger = logging.getLogger(__name__)


class ItemState(str, Enum):
    PENDING = 'pending'
    IN_FLIGHT = 'in_flight'
    SUCCEEDED = 'succeeded'
    FAILED_RETRYABLE = 'failed_retryable'
    FAILED_PERMANENT = 'failed_permanent'


@dataclass
class ReconcileItem:
    entity_id: Any
    entity_type: EntityType
    max_attempts: int
    attempts: int = 0
    last_error: Optional[str] = None
    state: ItemState = ItemState.PENDING
    not_before: float = 0.0


@dataclass(frozen=True)
class ReconcileError:
    entity_id: Any
    entity_type: str
    error: str
    attempts: int

    def as_dict(self) -> dict:
        return {
            'entityId': self.entity_id,
            'entityType': self.entity_type,
            'error': self.error,
            'attempts': self.attempts,
        }


@dataclass(frozen=True)
class ReconcileSummary:
    success: bool
    entity_type: EntityType
    total_entities: int
    success_count: int
    error_count: int
    message: str
    errors: list = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            'success': self.success,
            'totalEntities': self.total_entities,
            'successCount': self.success_count,
            'errorCount': self.error_count,
            'message': self.message,
            'entityType': self.entity_type.value,
            'errors': [error.as_dict() for error in self.errors],
        }


class BulkReconciler:

    def __init__(self, service=None, max_attempts=None, batch_size=None,
                 backoff_base=None, backoff_cap=None):
        self.service = service if service is not None else get_sync_service()
        self.max_attempts = int(get_setting('MAX_ATTEMPTS') if max_attempts is None else max_attempts)
        if self.max_attempts < 1:
            raise ImproperlyConfigured(f'CMS_SYNC MAX_ATTEMPTS must be at least 1, got {self.max_attempts}')
        self.batch_size = max(int(get_setting('BATCH_SIZE') if batch_size is None else batch_size), 1)
        self.backoff_base = float(get_setting('BACKOFF_BASE') if backoff_base is None else backoff_base)
        self.backoff_cap = float(get_setting('BACKOFF_CAP') if backoff_cap is None else backoff_cap)

    def backoff_delay(self, attempts: int) -> float:
        return min(self.backoff_base * 2 ** (attempts - 1), self.backoff_cap)

    def reconcile(self, entity_type) -> ReconcileSummary:
        """Sync every catalog entity of `entity_type` and report what happened."""
        entity_type = EntityType(entity_type)
        try:
            entities = self.service.catalog.list_entities(entity_type)
        except Exception as exc:
            message = f'Failed to fetch {entity_type.plural}: {exc}'
            logger.error("%s", message)
            return ReconcileSummary(
                success=False,
                entity_type=entity_type,
                total_entities=0,
                success_count=0,
                error_count=1,
                message=message,
                errors=[ReconcileError(-1, entity_type.value, message, 1)],
            )

        queue = deque(ReconcileItem(entity.id, entity_type, self.max_attempts) for entity in entities)
        total = len(queue)
        logger.info("Starting bulk sync of %d %s", total, entity_type.plural)

        success_count = 0
        errors = []
        pool = ThreadPoolExecutor(max_workers=self.batch_size) if self.batch_size > 1 else None
        try:
            while queue:
                batch = self._next_batch(queue)
                if pool is None:
                    for item in batch:
                        self._attempt(item)
                else:
                    list(pool.map(self._attempt, batch))

                for item in batch:
                    if item.state == ItemState.SUCCEEDED:
                        success_count += 1
                    elif item.state == ItemState.FAILED_PERMANENT:
                        errors.append(ReconcileError(
                            item.entity_id,
                            entity_type.value,
                            f'Failed after {item.max_attempts} attempts. Last error: {item.last_error}',
                            item.attempts,
                        ))
                    else:
                        item.state = ItemState.PENDING
                        queue.append(item)
        finally:
            if pool is not None:
                pool.shutdown()

        error_count = len(errors)
        if error_count:
            message = (f'Synced {success_count}/{total} {entity_type.plural}, '
                       f'{error_count} failed permanently')
            logger.warning("%s", message)
        else:
            message = f'Successfully synced {success_count}/{total} {entity_type.plural}'
            logger.info("%s", message)

        return ReconcileSummary(
            success=error_count == 0,
            entity_type=entity_type,
            total_entities=total,
            success_count=success_count,
            error_count=error_count,
            message=message,
            errors=errors,
        )

    def reconcile_all(self) -> list:
        """Products first, then variants, then collections."""
        return [
            self.reconcile(entity_type)
            for entity_type in (EntityType.PRODUCT, EntityType.PRODUCT_VARIANT, EntityType.COLLECTION)
        ]

    def _next_batch(self, queue: deque) -> list:
        now = time.monotonic()
        ready, waiting = [], []
        while queue and len(ready) < self.batch_size:
            item = queue.popleft()
            (ready if item.not_before <= now else waiting).append(item)
        queue.extendleft(reversed(waiting))
        if ready:
            return ready

        # Nothing is due yet: wait for the earliest item and run it alone.
        earliest = min(queue, key=lambda item: item.not_before)
        time.sleep(max(earliest.not_before - now, 0))
        queue.remove(earliest)
        return [earliest]

    def _attempt(self, item: ReconcileItem) -> None:
        item.state = ItemState.IN_FLIGHT
        item.attempts += 1
        job = SyncJobData(item.entity_type, item.entity_id, OperationType.UPDATE)
        try:
            self.service.sync(job)
        except Exception as exc:
            item.last_error = str(exc)
            if item.attempts >= item.max_attempts:
                item.state = ItemState.FAILED_PERMANENT
                logger.error(
                    "Failed to sync %s %s after %d attempts: %s",
                    item.entity_type.label, item.entity_id, item.attempts, exc,
                )
                return
            item.state = ItemState.FAILED_RETRYABLE
            delay = self.backoff_delay(item.attempts)
            item.not_before = time.monotonic() + delay
            logger.warning(
                "Sync of %s %s failed (attempt %d/%d), retrying in %.1fs: %s",
                item.entity_type.label, item.entity_id, item.attempts, item.max_attempts, delay, exc,
            )
            return
        item.state = ItemState.SUCCEEDED
