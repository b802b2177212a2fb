"""
Sync job and result types shared by the listener, the queue tasks and the
reconciler.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class EntityType(str, Enum):
    PRODUCT = 'Product'
    PRODUCT_VARIANT = 'ProductVariant'
    COLLECTION = 'Collection'

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def plural(self) -> str:
        return f'{self.label}s'


_LABELS = {
    EntityType.PRODUCT: 'product',
    EntityType.PRODUCT_VARIANT: 'product variant',
    EntityType.COLLECTION: 'collection',
}


class OperationType(str, Enum):
    CREATE = 'create'
    UPDATE = 'update'
    DELETE = 'delete'

    @classmethod
    def from_event(cls, event_type: str) -> 'OperationType':
        """Map a catalog event type ('created', 'updated', 'deleted') to an operation."""
        return _EVENT_OPERATIONS.get(event_type, cls.UPDATE)


_EVENT_OPERATIONS = {
    'created': OperationType.CREATE,
    'updated': OperationType.UPDATE,
    'deleted': OperationType.DELETE,
}


class SyncOutcome(str, Enum):
    """What an adapter actually did for one entity."""

    CREATED = 'created'
    UPDATED = 'updated'
    DELETED = 'deleted'
    SKIPPED = 'skipped'
    NOT_FOUND = 'not_found'


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SyncJobData:
    """
    Descriptor of one queued sync job.

    Travels through the broker as a plain dict (see as_dict/from_dict) so the
    Celery JSON serializer can carry it.
    """

    entity_type: EntityType
    entity_id: Any
    operation_type: OperationType
    timestamp: str = field(default_factory=_utcnow_iso)
    retry_count: int = 0

    def as_dict(self) -> dict:
        return {
            'entityType': self.entity_type.value,
            'entityId': self.entity_id,
            'operationType': self.operation_type.value,
            'timestamp': self.timestamp,
            'retryCount': self.retry_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SyncJobData':
        return cls(
            entity_type=EntityType(data['entityType']),
            entity_id=data['entityId'],
            operation_type=OperationType(data['operationType']),
            timestamp=data.get('timestamp') or _utcnow_iso(),
            retry_count=int(data.get('retryCount', 0)),
        )

    def next_retry(self) -> 'SyncJobData':
        return replace(self, retry_count=self.retry_count + 1)


@dataclass(frozen=True)
class SyncResponse:
    success: bool
    message: str
    outcome: Optional[SyncOutcome] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_dict(self) -> dict:
        return {
            'success': self.success,
            'message': self.message,
            'outcome': self.outcome.value if self.outcome else None,
            'timestamp': self.timestamp.isoformat(),
        }
