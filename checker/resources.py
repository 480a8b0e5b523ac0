"""
goal: map a resource type (core / plugin / theme) and a slug to the local folder and version that
      a file comparison needs. each type has its own lookup so the comparator never branches on
      raw strings and tests can swap in a fake host.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from checker.wp_host import WordPressHost


class ResourceType(Enum):
    CORE = "core"
    PLUGIN = "plugin"
    THEME = "theme"

    @classmethod
    def parse(cls, value: str | None) -> ResourceType | None:
        try:
            return cls(value or "")
        except ValueError:
            return None


@dataclass(frozen=True)
class ResourceLocation:
    slug: str  # slug sent to the reference service ("core" for core files)
    version: str
    root_path: Path


class InstalledResourceLookup:
    """resolve a slug to a ResourceLocation, None when nothing is installed under that slug"""

    not_found_message = "Local resource not found"

    def __init__(self, host: WordPressHost) -> None:
        self.host = host

    def locate(self, slug: str) -> ResourceLocation | None:
        raise NotImplementedError


class CoreLookup(InstalledResourceLookup):
    not_found_message = "Local core not found"

    def locate(self, slug: str) -> ResourceLocation | None:
        # slug is meaningless for core, there is only one
        return ResourceLocation(
            slug="core",
            version=self.host.core_version(),
            root_path=self.host.install_root_path(),
        )


class PluginLookup(InstalledResourceLookup):
    not_found_message = "Local plugin not found"

    def locate(self, slug: str) -> ResourceLocation | None:
        for plugin_id, plugin in self.host.list_installed_plugins().items():
            # "akismet/akismet.php" -> "akismet"; single-file plugins use their file name
            if plugin_id.split("/")[0] == slug:
                return ResourceLocation(
                    slug=slug,
                    version=plugin.get("Version", ""),
                    root_path=self.host.plugins_path() / slug,
                )
        return None


class ThemeLookup(InstalledResourceLookup):
    not_found_message = "Local theme not found"

    def locate(self, slug: str) -> ResourceLocation | None:
        theme = self.host.list_installed_themes().get(slug)
        if theme is None:
            return None
        return ResourceLocation(slug=slug, version=theme.version, root_path=theme.root)


def lookups_for(host: WordPressHost) -> dict[ResourceType, InstalledResourceLookup]:
    return {
        ResourceType.CORE: CoreLookup(host),
        ResourceType.PLUGIN: PluginLookup(host),
        ResourceType.THEME: ThemeLookup(host),
    }
