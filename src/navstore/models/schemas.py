"""
Per-path content schemas and their fallback values.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Any, List, Optional

from .blob import FallbackValue
from .navigation import validate_navigation
from .site import SiteConfig, validate_site
from ..error_handling.exceptions import SchemaValidationError

logger = logging.getLogger(__name__)

Validator = Callable[[Dict[str, Any]], None]

NAVIGATION_FALLBACK: Dict[str, Any] = {"navigationItems": []}
SITE_FALLBACK: Dict[str, Any] = SiteConfig().to_dict()
DEFAULT_FALLBACK: Dict[str, Any] = {}


@dataclass(frozen=True)
class ContentSchema:
    """
    Logical schema bound to a file name.

    A schema applies to any path whose last component equals ``filename``,
    so the same schema covers the content directory of every deployment.
    """

    name: str
    filename: str
    fallback: Dict[str, Any]
    validator: Optional[Validator] = None

    def matches(self, path: str) -> bool:
        return path.strip("/").rsplit("/", 1)[-1] == self.filename

    def fallback_for(self, path: str) -> FallbackValue:
        return FallbackValue(path=path, value=copy.deepcopy(self.fallback))

    def validate(self, path: str, data: Any) -> None:
        if self.validator is None:
            return
        try:
            self.validator(data)
        except SchemaValidationError as e:
            e.path = path
            e.context.setdefault("path", path)
            e.context.setdefault("schema", self.name)
            raise


class SchemaRegistry:
    """
    Lookup from content path to schema.

    Paths with no registered schema fall back to an empty object and skip
    validation beyond "is a JSON object".
    """

    def __init__(self, schemas: Optional[List[ContentSchema]] = None, default_fallback: Optional[Dict[str, Any]] = None):
        self._schemas: List[ContentSchema] = list(schemas or [])
        self._default_fallback = DEFAULT_FALLBACK if default_fallback is None else default_fallback

    def register(self, schema: ContentSchema) -> None:
        self._schemas = [s for s in self._schemas if s.filename != schema.filename]
        self._schemas.append(schema)
        logger.debug(f"Registered content schema {schema.name} for {schema.filename}")

    def schema_for(self, path: str) -> Optional[ContentSchema]:
        for schema in self._schemas:
            if schema.matches(path):
                return schema
        return None

    def fallback_for(self, path: str) -> FallbackValue:
        schema = self.schema_for(path)
        if schema is None:
            return FallbackValue(path=path, value=copy.deepcopy(self._default_fallback))
        return schema.fallback_for(path)

    def validate(self, path: str, data: Any) -> None:
        """
        Check a decoded document against the schema for its path.

        Raises:
            SchemaValidationError: If the document does not match
        """
        if not isinstance(data, dict):
            raise SchemaValidationError(f"Content at {path} must be a JSON object", path=path)
        schema = self.schema_for(path)
        if schema is not None:
            schema.validate(path, data)

    @property
    def schemas(self) -> List[ContentSchema]:
        return list(self._schemas)


NAVIGATION_SCHEMA = ContentSchema(
    name="navigation",
    filename="navigation.json",
    fallback=NAVIGATION_FALLBACK,
    validator=validate_navigation
)

SITE_SCHEMA = ContentSchema(
    name="site",
    filename="site.json",
    fallback=SITE_FALLBACK,
    validator=validate_site
)


def default_registry() -> SchemaRegistry:
    return SchemaRegistry([NAVIGATION_SCHEMA, SITE_SCHEMA])
