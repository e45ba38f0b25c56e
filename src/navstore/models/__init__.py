"""
Data models for the content store.
"""

from .coordinates import RepositoryCoordinates
from .blob import (
    ContentBlob, FallbackValue, ReadResult, CommitRequest, CommitResult, Credential
)
from .navigation import (
    NavigationData, NavigationCategory, NavigationSubCategory, NavigationItem,
    NavigationStats, navigation_stats
)
from .site import SiteConfig
from .schemas import (
    ContentSchema, SchemaRegistry, default_registry,
    NAVIGATION_SCHEMA, SITE_SCHEMA, NAVIGATION_FALLBACK, SITE_FALLBACK, DEFAULT_FALLBACK
)

__all__ = [
    "RepositoryCoordinates",
    "ContentBlob",
    "FallbackValue",
    "ReadResult",
    "CommitRequest",
    "CommitResult",
    "Credential",
    "NavigationData",
    "NavigationCategory",
    "NavigationSubCategory",
    "NavigationItem",
    "NavigationStats",
    "navigation_stats",
    "SiteConfig",
    "ContentSchema",
    "SchemaRegistry",
    "default_registry",
    "NAVIGATION_SCHEMA",
    "SITE_SCHEMA",
    "NAVIGATION_FALLBACK",
    "SITE_FALLBACK",
    "DEFAULT_FALLBACK"
]
