"""
CMS platform adapters.

Pick one with CMS_SYNC['ADAPTER'], e.g. 'cmssync.cms.sanity.SanityAdapter'.
"""

from cmssync.cms.base import CmsAdapter
from cmssync.cms.client import CmsClient

__all__ = ['CmsAdapter', 'CmsClient']
