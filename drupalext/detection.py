"""
Drupal project detection.

Decides whether a worktree is a Drupal codebase and, if it is, where its
webroot lives. Only read access to the project is needed.

Detection order:
1. composer.json declares drupal/core (or drupal/core-recommended) in
   require / require-dev. The webroot comes from extra.installer-paths
   when a "type:drupal-core" entry is present.
2. Otherwise probe the known core locations (web, docroot, project root).
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol


class ProjectReader(Protocol):
    def read_text_file(self, relative_path: str) -> str | None: ...

    def exists(self, relative_path: str) -> bool: ...


COMPOSER_FILE = "composer.json"

# Composer packages that mark a Drupal project. drupal/core-recommended is
# the meta-package used by drupal/recommended-project.
DRUPAL_CORE_PACKAGES = ("drupal/core", "drupal/core-recommended")

DRUPAL_CORE_INSTALLER_TYPE = "type:drupal-core"

# (webroot, marker file relative to the project root). Order matters:
# a nested core/ checkout must not win over web/ or docroot/.
KNOWN_WEBROOTS = (
    ("web", "web/core/lib/Drupal.php"),
    ("docroot", "docroot/core/lib/Drupal.php"),
    (".", "core/lib/Drupal.php"),
)


@dataclass(frozen=True)
class DrupalProject:
    """Result of a successful detection."""

    web_root: str  # "web", "docroot", "." for the project root, ...


@dataclass(frozen=True)
class Detection:
    """
    Outcome of one detection attempt.

    ``conclusive`` is False only when the manifest could not be read (I/O
    error or invalid UTF-8) and nothing else matched; the caller should not memoize
    such a result.
    """

    project: DrupalProject | None
    source: str
    conclusive: bool = True


def detect(reader: ProjectReader) -> DrupalProject | None:
    """Detect a Drupal project, returning its webroot or None."""
    return detect_project(reader).project


def detect_project(reader: ProjectReader) -> Detection:
    """Run detection and report how the answer was reached."""
    manifest_readable = True
    try:
        content = reader.read_text_file(COMPOSER_FILE)
    except (OSError, UnicodeDecodeError):
        content = None
        manifest_readable = False

    if content is not None:
        manifest = parse_manifest(content)
        if manifest is not None and has_drupal_core_dependency(manifest):
            web_root = parse_webroot_from_installer_paths(manifest)
            # Trust installer-paths even before `composer install` has put
            # core on disk.
            if web_root is not None:
                return Detection(DrupalProject(web_root), "installer-paths")

    detection = detect_from_filesystem(reader)
    if detection.project is None and not manifest_readable:
        return Detection(None, "composer.json unreadable", conclusive=False)
    return detection


def detect_from_filesystem(reader: ProjectReader) -> Detection:
    """Probe the known webroot locations in priority order."""
    for web_root, marker in KNOWN_WEBROOTS:
        if reader.exists(marker):
            return Detection(DrupalProject(web_root), f"filesystem probe: {marker}")
    return Detection(None, "no Drupal signal")


def parse_manifest(content: str) -> dict[str, Any] | None:
    """Parse composer.json, returning None unless it is a JSON object."""
    try:
        manifest = json.loads(content)
    except json.JSONDecodeError:
        return None
    if not isinstance(manifest, dict):
        return None
    return manifest


def has_drupal_core_dependency(manifest: dict[str, Any]) -> bool:
    """Check require / require-dev for a Drupal core package key."""
    for section in ("require", "require-dev"):
        deps = manifest.get(section)
        if not isinstance(deps, dict):
            continue
        if any(package in deps for package in DRUPAL_CORE_PACKAGES):
            return True
    return False


def parse_webroot_from_installer_paths(manifest: dict[str, Any]) -> str | None:
    """
    Derive the webroot from the installer-paths entry for drupal-core.

    Example:
        {"extra": {"installer-paths": {"web/core": ["type:drupal-core"]}}}
        -> "web"

    With several drupal-core entries the first in document order wins.
    """
    extra = manifest.get("extra")
    if not isinstance(extra, dict):
        return None
    installer_paths = extra.get("installer-paths")
    if not isinstance(installer_paths, dict):
        return None

    for path, types in installer_paths.items():
        if not isinstance(types, list) or DRUPAL_CORE_INSTALLER_TYPE not in types:
            continue
        if path.endswith("/core"):
            return path[: -len("/core")]
        if path == "core":
            return "."
        return path

    return None
