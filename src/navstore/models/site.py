"""
Site settings schema.
"""

from dataclasses import dataclass, field
from typing import Dict, Any

from ..error_handling.exceptions import SchemaValidationError

VALID_THEMES = {"light", "dark", "system"}
VALID_LINK_TARGETS = {"_blank", "_self"}


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise SchemaValidationError(f"site.{key} must be an object", invalid_fields=[key])
    return value


def _string(section: Dict[str, Any], key: str, default: str, where: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str):
        raise SchemaValidationError(f"{where}.{key} must be a string", invalid_fields=[key])
    return value


@dataclass
class SiteConfig:
    """
    Site-wide settings rendered around the navigation tree.

    Unknown top-level sections are preserved in ``extra``.
    """

    title: str = "Navigation"
    description: str = ""
    keywords: str = ""
    logo: str = ""
    favicon: str = ""
    theme: str = "system"
    link_target: str = "_blank"
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SiteConfig":
        """
        Build and validate site settings from their JSON form.

        Raises:
            SchemaValidationError: If a section or field has the wrong type
        """
        if not isinstance(data, dict):
            raise SchemaValidationError("Site config must be an object")

        basic = _section(data, "basic")
        appearance = _section(data, "appearance")
        navigation = _section(data, "navigation")

        theme = _string(appearance, "theme", "system", "site.appearance")
        if theme not in VALID_THEMES:
            raise SchemaValidationError(
                f"site.appearance.theme must be one of {sorted(VALID_THEMES)}, got {theme!r}",
                invalid_fields=["theme"]
            )
        link_target = _string(navigation, "linkTarget", "_blank", "site.navigation")
        if link_target not in VALID_LINK_TARGETS:
            raise SchemaValidationError(
                f"site.navigation.linkTarget must be one of {sorted(VALID_LINK_TARGETS)}, got {link_target!r}",
                invalid_fields=["linkTarget"]
            )

        return cls(
            title=_string(basic, "title", "Navigation", "site.basic"),
            description=_string(basic, "description", "", "site.basic"),
            keywords=_string(basic, "keywords", "", "site.basic"),
            logo=_string(appearance, "logo", "", "site.appearance"),
            favicon=_string(appearance, "favicon", "", "site.appearance"),
            theme=theme,
            link_target=link_target,
            extra={k: v for k, v in data.items() if k not in ("basic", "appearance", "navigation")}
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "basic": {
                "title": self.title,
                "description": self.description,
                "keywords": self.keywords
            },
            "appearance": {
                "logo": self.logo,
                "favicon": self.favicon,
                "theme": self.theme
            },
            "navigation": {
                "linkTarget": self.link_target
            }
        }
        result.update(self.extra)
        return result


def validate_site(data: Dict[str, Any]) -> None:
    SiteConfig.from_dict(data)
