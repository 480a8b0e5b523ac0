"""
goal: read-only introspection of a WordPress install on disk. answers the questions the file
      comparator needs: where the install lives, which core version it runs, and which plugins and
      themes are installed (with their declared versions).

the header parsing mirrors WordPress itself: only the first 8 KiB of a file is searched for
"Name: value" lines, comment decoration is stripped, and a plugin/theme without a name header is
not considered installed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("integrity_checker.host")

HEADER_READ_BYTES = 8 * 1024
_VERSION_RE = re.compile(r"""\$wp_version\s*=\s*['"]([^'"]+)['"]""")
_CLOSE_COMMENT_RE = re.compile(r"\s*(?:\*/|\?>).*")


@dataclass(frozen=True)
class ThemeRecord:
    slug: str  # directory name under the themes root
    name: str
    version: str
    theme_root: Path
    stylesheet: str  # folder holding style.css (same as slug for regular themes)

    @property
    def root(self) -> Path:
        return self.theme_root / self.stylesheet


def read_file_headers(path: Path, names: dict[str, str]) -> dict[str, str]:
    """
    parse WordPress-style file headers.
    names maps the key we want back to the header label, e.g. {"Version": "Version"}.
    missing headers come back as "".
    """
    try:
        with open(path, "rb") as f:
            head = f.read(HEADER_READ_BYTES).decode("utf-8", errors="replace")
    except OSError:
        return {key: "" for key in names}
    head = head.replace("\r", "\n")

    out: dict[str, str] = {}
    for key, label in names.items():
        m = re.search(
            r"^(?:[ \t]*<\?php)?[ \t/*#@]*" + re.escape(label) + r":(.*)$",
            head,
            re.MULTILINE | re.IGNORECASE,
        )
        out[key] = _CLOSE_COMMENT_RE.sub("", m.group(1)).strip() if m else ""
    return out


class WordPressHost:
    """filesystem view of one WordPress install"""

    def __init__(
        self,
        install_root: str | Path,
        plugins_path: str | Path | None = None,
        themes_path: str | Path | None = None,
    ) -> None:
        self._root = Path(install_root)
        content = self._root / "wp-content"
        self._plugins = Path(plugins_path) if plugins_path else content / "plugins"
        self._themes = Path(themes_path) if themes_path else content / "themes"

    def install_root_path(self) -> Path:
        return self._root

    def plugins_path(self) -> Path:
        return self._plugins

    def themes_path(self) -> Path:
        return self._themes

    def core_version(self) -> str:
        version_file = self._root / "wp-includes" / "version.php"
        try:
            text = version_file.read_text(encoding="utf-8", errors="replace")
        except OSError:
            logger.debug("no readable core version file at %s", version_file)
            return ""
        m = _VERSION_RE.search(text)
        return m.group(1) if m else ""

    def _plugin_candidates(self) -> list[tuple[str, Path]]:
        # main plugin files live directly in the plugins dir or one folder down
        found: list[tuple[str, Path]] = []
        try:
            entries = sorted(self._plugins.iterdir())
        except OSError:
            return found
        for entry in entries:
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                try:
                    children = sorted(entry.iterdir())
                except OSError:
                    continue
                for child in children:
                    if child.name.startswith("."):
                        continue
                    if child.is_file() and child.suffix == ".php":
                        found.append((f"{entry.name}/{child.name}", child))
            elif entry.is_file() and entry.suffix == ".php":
                found.append((entry.name, entry))
        return found

    def list_installed_plugins(self) -> dict[str, dict[str, str]]:
        """plugin id ("akismet/akismet.php") -> {"Name", "Version"}"""
        plugins: dict[str, dict[str, str]] = {}
        for plugin_id, path in self._plugin_candidates():
            data = read_file_headers(path, {"Name": "Plugin Name", "Version": "Version"})
            if not data["Name"]:
                continue
            plugins[plugin_id] = data
        return plugins

    def list_installed_themes(self) -> dict[str, ThemeRecord]:
        """theme slug -> ThemeRecord"""
        themes: dict[str, ThemeRecord] = {}
        try:
            entries = sorted(self._themes.iterdir())
        except OSError:
            return themes
        for entry in entries:
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            data = read_file_headers(
                entry / "style.css", {"Name": "Theme Name", "Version": "Version"}
            )
            if not data["Name"]:
                continue
            themes[entry.name] = ThemeRecord(
                slug=entry.name,
                name=data["Name"],
                version=data["Version"],
                theme_root=self._themes,
                stylesheet=entry.name,
            )
        return themes
