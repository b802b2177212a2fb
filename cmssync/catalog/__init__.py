"""
Catalog Backend Protocol.

Defines what cmssync needs from the host application's catalog: fresh
copies of products, variants and collections plus the relations between
them. The host plugs its implementation in through
CMS_SYNC["CATALOG_BACKEND"].
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from cmssync.jobs import EntityType


# ══════════════════════════════════════════════════════════════
# DATA TYPES
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Translation:
    language_code: str
    name: str = ''
    slug: Optional[str] = None


@dataclass(frozen=True)
class Product:
    id: Any
    translations: list[Translation] = field(default_factory=list)


@dataclass(frozen=True)
class ProductVariant:
    id: Any
    product_id: Any
    translations: list[Translation] = field(default_factory=list)
    product: Optional[Product] = None


@dataclass(frozen=True)
class Collection:
    id: Any
    translations: list[Translation] = field(default_factory=list)


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════


@runtime_checkable
class CatalogBackend(Protocol):
    """
    Source of catalog entities.

    Entities are always re-read by id when a job runs; the job itself only
    carries the id.
    """

    def default_language_code(self) -> str:
        """Language whose translation is pushed to the CMS."""
        ...

    def get(self, entity_type: EntityType, entity_id) -> Optional[Any]:
        """Return the entity or None. Variants come with their parent product attached."""
        ...

    def list_entities(self, entity_type: EntityType) -> list:
        """Return every entity of a kind, ordered by id."""
        ...

    def variants_for_product(self, product_id) -> list[ProductVariant]:
        ...

    def collections_for_variant(self, variant_id) -> list[Collection]:
        ...

    def variants_for_collection(self, collection_id) -> list[ProductVariant]:
        ...


__all__ = [
    'CatalogBackend',
    'Collection',
    'Product',
    'ProductVariant',
    'Translation',
]
