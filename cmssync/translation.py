import logging
from typing import Optional

from cmssync.exceptions import TranslationMissing

logger = logging.getLogger(__name__)


def get_translation(translations, language_code: str):
    """Return the translation for `language_code`, or None."""
    for translation in translations or ():
        if translation.language_code == language_code:
            return translation
    return None


def get_slug(translations, language_code: str) -> Optional[str]:
    """Return the slug of the `language_code` translation; empty slugs count as missing."""
    translation = get_translation(translations, language_code)
    if translation is None:
        return None
    return translation.slug or None


def require_translation(entity_type, entity, language_code: str):
    """Return the entity's translation for `language_code` or raise TranslationMissing."""
    translation = get_translation(entity.translations, language_code)
    if translation is None:
        raise TranslationMissing(entity_type.value, entity.id, language_code)
    return translation


def build_variant_slug(product_slug: Optional[str], variant_id) -> str:
    """
    Variants have no slug of their own: derive one from the parent product.

    Falls back to "variant-<id>" when the product has no slug.
    """
    if product_slug:
        return f'{product_slug}-variant-{variant_id}'
    logger.debug("Variant %s has no product slug – using bare variant slug.", variant_id)
    return f'variant-{variant_id}'


def normalize_id(entity_id):
    """Catalog ids are stored numerically on the CMS side when they look numeric."""
    if isinstance(entity_id, int):
        return entity_id
    text = str(entity_id)
    return int(text) if text.isdigit() else text
