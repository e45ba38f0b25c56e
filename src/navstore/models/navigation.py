"""
Navigation tree schema.

Mirrors the JSON stored at the navigation path:

    {"navigationItems": [
        {"id": ..., "title": ..., "icon": ..., "items": [...],
         "subCategories": [{"id": ..., "title": ..., "items": [...]}]}
    ]}

Unknown keys are kept in ``extra`` so that a read-modify-write cycle never
drops fields this package does not know about.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from ..error_handling.exceptions import SchemaValidationError


def _require(data: Any, keys: List[str], where: str) -> None:
    if not isinstance(data, dict):
        raise SchemaValidationError(f"{where} must be an object, got {type(data).__name__}")
    missing = [k for k in keys if not isinstance(data.get(k), str) or not data.get(k)]
    if missing:
        raise SchemaValidationError(
            f"{where} is missing required field(s): {', '.join(missing)}",
            invalid_fields=missing
        )


def _list_of(data: Dict[str, Any], key: str, where: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SchemaValidationError(f"{where}.{key} must be a list", invalid_fields=[key])
    return value


def _enabled(data: Dict[str, Any], where: str) -> Optional[bool]:
    value = data.get("enabled")
    if value is not None and not isinstance(value, bool):
        raise SchemaValidationError(f"{where}.enabled must be a boolean", invalid_fields=["enabled"])
    return value


def _extra(data: Dict[str, Any], known: set) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


@dataclass
class NavigationItem:
    """A single link in a category or sub-category."""

    id: str
    title: str
    href: str
    description: Optional[str] = None
    icon: Optional[str] = None
    enabled: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _known = {"id", "title", "href", "description", "icon", "enabled"}

    @property
    def is_enabled(self) -> bool:
        return self.enabled is not False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str = "item") -> "NavigationItem":
        _require(data, ["id", "title", "href"], where)
        return cls(
            id=data["id"],
            title=data["title"],
            href=data["href"],
            description=data.get("description"),
            icon=data.get("icon"),
            enabled=_enabled(data, where),
            extra=_extra(data, cls._known)
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "title": self.title, "href": self.href}
        if self.description is not None:
            result["description"] = self.description
        if self.icon is not None:
            result["icon"] = self.icon
        if self.enabled is not None:
            result["enabled"] = self.enabled
        result.update(self.extra)
        return result


@dataclass
class NavigationSubCategory:
    """Second-level category inside a NavigationCategory."""

    id: str
    title: str
    items: List[NavigationItem] = field(default_factory=list)
    icon: Optional[str] = None
    enabled: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _known = {"id", "title", "items", "icon", "enabled"}

    @property
    def is_enabled(self) -> bool:
        return self.enabled is not False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str = "subCategory") -> "NavigationSubCategory":
        _require(data, ["id", "title"], where)
        return cls(
            id=data["id"],
            title=data["title"],
            items=[
                NavigationItem.from_dict(item, f"{where}.items[{i}]")
                for i, item in enumerate(_list_of(data, "items", where))
            ],
            icon=data.get("icon"),
            enabled=_enabled(data, where),
            extra=_extra(data, cls._known)
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "items": [item.to_dict() for item in self.items]
        }
        if self.icon is not None:
            result["icon"] = self.icon
        if self.enabled is not None:
            result["enabled"] = self.enabled
        result.update(self.extra)
        return result


@dataclass
class NavigationCategory:
    """Top-level navigation category."""

    id: str
    title: str
    items: List[NavigationItem] = field(default_factory=list)
    sub_categories: List[NavigationSubCategory] = field(default_factory=list)
    icon: Optional[str] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _known = {"id", "title", "items", "subCategories", "icon", "description", "enabled"}

    @property
    def is_enabled(self) -> bool:
        return self.enabled is not False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str = "category") -> "NavigationCategory":
        _require(data, ["id", "title"], where)
        return cls(
            id=data["id"],
            title=data["title"],
            items=[
                NavigationItem.from_dict(item, f"{where}.items[{i}]")
                for i, item in enumerate(_list_of(data, "items", where))
            ],
            sub_categories=[
                NavigationSubCategory.from_dict(sub, f"{where}.subCategories[{i}]")
                for i, sub in enumerate(_list_of(data, "subCategories", where))
            ],
            icon=data.get("icon"),
            description=data.get("description"),
            enabled=_enabled(data, where),
            extra=_extra(data, cls._known)
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "items": [item.to_dict() for item in self.items]
        }
        if self.sub_categories:
            result["subCategories"] = [sub.to_dict() for sub in self.sub_categories]
        if self.icon is not None:
            result["icon"] = self.icon
        if self.description is not None:
            result["description"] = self.description
        if self.enabled is not None:
            result["enabled"] = self.enabled
        result.update(self.extra)
        return result


@dataclass
class NavigationData:
    """The whole navigation tree."""

    navigation_items: List[NavigationCategory] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NavigationData":
        """
        Build and validate a navigation tree from its JSON form.

        Raises:
            SchemaValidationError: If a required field is missing or has the
                wrong type
        """
        if not isinstance(data, dict):
            raise SchemaValidationError("Navigation data must be an object")
        if "navigationItems" not in data:
            raise SchemaValidationError(
                "Navigation data is missing required field: navigationItems",
                invalid_fields=["navigationItems"]
            )
        categories = _list_of(data, "navigationItems", "navigation")

        seen = set()
        result = []
        for i, raw in enumerate(categories):
            category = NavigationCategory.from_dict(raw, f"navigationItems[{i}]")
            if category.id in seen:
                raise SchemaValidationError(
                    f"Duplicate category id: {category.id}",
                    invalid_fields=["id"]
                )
            seen.add(category.id)
            result.append(category)
        return cls(navigation_items=result)

    def to_dict(self) -> Dict[str, Any]:
        return {"navigationItems": [category.to_dict() for category in self.navigation_items]}

    def find_category(self, category_id: str) -> Optional[NavigationCategory]:
        for category in self.navigation_items:
            if category.id == category_id:
                return category
        return None


def validate_navigation(data: Dict[str, Any]) -> None:
    NavigationData.from_dict(data)


@dataclass(frozen=True)
class NavigationStats:
    """Category and site counts for the admin dashboard."""

    parent_categories: int
    sub_categories: int
    total_categories: int
    total_sites: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "parentCategories": self.parent_categories,
            "subCategories": self.sub_categories,
            "totalCategories": self.total_categories,
            "totalSites": self.total_sites
        }


def navigation_stats(data: NavigationData) -> NavigationStats:
    """
    Count categories and sites across the tree.

    Sites are the items of every category plus the items of every
    sub-category; disabled entries are counted too.
    """
    parent_categories = len(data.navigation_items)
    sub_categories = sum(len(c.sub_categories) for c in data.navigation_items)
    total_sites = sum(
        len(c.items) + sum(len(sub.items) for sub in c.sub_categories)
        for c in data.navigation_items
    )
    return NavigationStats(
        parent_categories=parent_categories,
        sub_categories=sub_categories,
        total_categories=parent_categories + sub_categories,
        total_sites=total_sites
    )
