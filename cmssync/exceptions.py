"""
cmssync exceptions.

Every error raised by the sync engine derives from CmsSyncError.
"""

from typing import Any


class CmsSyncError(Exception):
    """
    Base exception for all sync errors.

    Usage:
        raise CmsSyncError('UNSUPPORTED_ENTITY_TYPE', entity_type='Order')

    Attributes:
        code: Error code (CMS_API_ERROR, TRANSLATION_MISSING, etc.)
        details: Additional context as keyword arguments
    """

    def __init__(self, code: str, **details: Any):
        self.code = code
        self.details = details
        message = f"{code}: {details}" if details else code
        super().__init__(message)

    def as_dict(self) -> dict:
        return {'code': self.code, **self.details}

    def __str__(self) -> str:
        if self.details:
            details_str = ', '.join(f'{k}={v}' for k, v in self.details.items())
            return f'{self.code}({details_str})'
        return self.code


class TranslationMissing(CmsSyncError):
    """The entity has no translation for the language being synced."""

    def __init__(self, entity_type: str, entity_id, language_code: str):
        super().__init__(
            'TRANSLATION_MISSING',
            entity_type=entity_type,
            entity_id=entity_id,
            language_code=language_code,
        )

    def __str__(self) -> str:
        d = self.details
        return f"No translation found for {d['entity_type']} {d['entity_id']} in language {d['language_code']}"


class EntityNotFound(CmsSyncError):
    """The catalog backend has no entity with the requested id."""

    def __init__(self, entity_type: str, entity_id):
        super().__init__('ENTITY_NOT_FOUND', entity_type=entity_type, entity_id=entity_id)

    def __str__(self) -> str:
        return f"{self.details['entity_type']} with ID {self.details['entity_id']} not found"


class CmsApiError(CmsSyncError):
    """A CMS API call answered with a non-2xx status."""

    def __init__(self, platform: str, status_code: int, reason: str = '', body: str = ''):
        self.status_code = status_code
        super().__init__(
            'CMS_API_ERROR',
            platform=platform,
            status_code=status_code,
            reason=reason,
            body=body,
        )

    def __str__(self) -> str:
        d = self.details
        return f"{d['platform']} API error: {d['status_code']} {d['reason']} - {d['body']}"
