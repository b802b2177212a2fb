"""
In-memory catalog backend.

Useful for development, for demos and for tests that should not depend on
the host application's database.

Configuration:
    CMS_SYNC = {
        'CATALOG_BACKEND': 'cmssync.catalog.memory.InMemoryCatalog',
    }
"""

from dataclasses import replace
from typing import Optional

from cmssync.catalog import Collection, Product, ProductVariant
from cmssync.conf import get_setting
from cmssync.jobs import EntityType

_ENTITY_CLASSES = {
    Product: EntityType.PRODUCT,
    ProductVariant: EntityType.PRODUCT_VARIANT,
    Collection: EntityType.COLLECTION,
}


def _key(entity_id) -> str:
    return str(entity_id)


def _sort_key(entity):
    entity_id = entity.id
    return (0, int(entity_id), '') if str(entity_id).isdigit() else (1, 0, str(entity_id))


class InMemoryCatalog:
    """
    CatalogBackend keeping entities in dicts.

    Ids are compared by their string form, so a job carrying "7" finds the
    product created with id 7.
    """

    def __init__(self, products=(), variants=(), collections=(),
                 collection_variants: Optional[dict] = None,
                 language_code: Optional[str] = None):
        self._entities = {entity_type: {} for entity_type in EntityType}
        self._collection_variants = {}
        self._language_code = language_code

        for entity in (*products, *variants, *collections):
            self.add(entity)
        for collection_id, variant_ids in (collection_variants or {}).items():
            self.assign(collection_id, variant_ids)

    def add(self, entity) -> None:
        self._entities[_ENTITY_CLASSES[type(entity)]][_key(entity.id)] = entity

    def remove(self, entity_type: EntityType, entity_id) -> None:
        self._entities[entity_type].pop(_key(entity_id), None)

    def assign(self, collection_id, variant_ids) -> None:
        """Set the variants that belong to a collection."""
        self._collection_variants[_key(collection_id)] = [_key(v) for v in variant_ids]

    # ── CatalogBackend ──

    def default_language_code(self) -> str:
        return self._language_code or get_setting('DEFAULT_LANGUAGE_CODE')

    def get(self, entity_type: EntityType, entity_id):
        entity = self._entities[entity_type].get(_key(entity_id))
        if entity_type == EntityType.PRODUCT_VARIANT and entity is not None:
            return self._with_product(entity)
        return entity

    def list_entities(self, entity_type: EntityType) -> list:
        return sorted(self._entities[entity_type].values(), key=_sort_key)

    def variants_for_product(self, product_id) -> list[ProductVariant]:
        variants = [
            v for v in self._entities[EntityType.PRODUCT_VARIANT].values()
            if _key(v.product_id) == _key(product_id)
        ]
        return [self._with_product(v) for v in sorted(variants, key=_sort_key)]

    def collections_for_variant(self, variant_id) -> list[Collection]:
        collections = self._entities[EntityType.COLLECTION]
        return sorted(
            (collections[c] for c, variant_ids in self._collection_variants.items()
             if _key(variant_id) in variant_ids and c in collections),
            key=_sort_key,
        )

    def variants_for_collection(self, collection_id) -> list[ProductVariant]:
        variants = self._entities[EntityType.PRODUCT_VARIANT]
        found = [
            variants[v] for v in self._collection_variants.get(_key(collection_id), [])
            if v in variants
        ]
        return [self._with_product(v) for v in sorted(found, key=_sort_key)]

    def _with_product(self, variant: ProductVariant) -> ProductVariant:
        if variant.product is not None:
            return variant
        product = self._entities[EntityType.PRODUCT].get(_key(variant.product_id))
        return replace(variant, product=product)
