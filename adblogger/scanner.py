"""Discovery of React Native projects on disk."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Sequence
from pathlib import Path

from .models import AppRecord

logger = logging.getLogger(__name__)

ANDROID_NS = "{http://schemas.android.com/apk/res/android}"
MANIFEST_PATH = ("android", "app", "src", "main", "AndroidManifest.xml")
GRADLE_PATHS = (
    ("android", "app", "build.gradle"),
    ("android", "app", "build.gradle.kts"),
)
GRADLE_ID_PATTERN = re.compile(
    r"""\b(applicationId|namespace)\s*=?\s*["']([A-Za-z][\w.]*)["']"""
)

DEFAULT_SKIP_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        ".vscode",
        ".idea",
        "build",
        "dist",
        "coverage",
        ".expo",
        "ios",
        "android",
    }
)


def default_scan_paths() -> list[Path]:
    home = Path.home()
    return [home / "Desktop", home / "Documents", home / "Projects"]


def extract_package_info(project_dir: Path) -> tuple[str, str] | None:
    """Read the package name and app name of an Android project.

    The package comes from the ``package`` attribute of
    ``android/app/src/main/AndroidManifest.xml``. Newer projects declare it
    in Gradle instead, so ``applicationId`` (or ``namespace``) in
    ``android/app/build.gradle`` is used when the manifest has none.

    Args:
        project_dir: The project root.

    Returns:
        ``(package_name, app_name)``, or None if this is not an Android project.
    """
    manifest_path = project_dir.joinpath(*MANIFEST_PATH)
    try:
        root = ET.parse(manifest_path).getroot()
    except (OSError, ET.ParseError):
        return None

    app_name = "Unknown App"
    application = root.find("application")
    if application is not None:
        app_name = (
            application.get(f"{ANDROID_NS}label")
            or application.get(f"{ANDROID_NS}name")
            or app_name
        )

    package_name = root.get("package") or _package_from_gradle(project_dir)
    if not package_name:
        return None
    return package_name, app_name


def _package_from_gradle(project_dir: Path) -> str | None:
    found: dict[str, str] = {}
    for parts in GRADLE_PATHS:
        try:
            content = project_dir.joinpath(*parts).read_text(encoding="utf-8")
        except OSError:
            continue
        for key, value in GRADLE_ID_PATTERN.findall(content):
            found.setdefault(key, value)
    return found.get("applicationId") or found.get("namespace")


class ProjectScanner:
    """Finds React Native projects below a set of root directories.

    A directory is a project when it contains an Android app manifest. Other
    directories are searched recursively up to ``max_depth`` levels, skipping
    dependency, build and hidden directories.

    Args:
        default_paths: Roots always scanned. Defaults to ``~/Desktop``,
            ``~/Documents`` and ``~/Projects``.
        max_depth: Maximum recursion depth below each root.
        skip_dirs: Directory names never descended into.
    """

    def __init__(
        self,
        default_paths: Sequence[str | Path] | None = None,
        max_depth: int = 5,
        skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
    ) -> None:
        if default_paths is None:
            self.default_paths = default_scan_paths()
        else:
            self.default_paths = [Path(p) for p in default_paths]
        self.max_depth = max_depth
        self.skip_dirs = frozenset(skip_dirs)

    def scan_projects(
        self, custom_paths: Sequence[str | Path] = ()
    ) -> list[AppRecord]:
        """Scan the default and custom roots.

        Roots that cannot be read are logged and skipped.

        Returns:
            The discovered projects, unique by package name, in discovery order.
        """
        projects: list[AppRecord] = []
        for root in [*self.default_paths, *(Path(p).expanduser() for p in custom_paths)]:
            if not root.is_dir():
                logger.debug("Skipping missing scan path %s", root)
                continue
            try:
                projects.extend(self.scan_directory(root))
            except OSError as e:
                logger.warning("Could not scan %s: %s", root, e)
        return self.deduplicate(projects)

    def scan_directory(self, directory: Path, depth: int = 0) -> list[AppRecord]:
        if depth > self.max_depth:
            return []

        projects: list[AppRecord] = []
        for entry in sorted(directory.iterdir()):
            try:
                if not entry.is_dir():
                    continue
            except OSError:
                continue

            info = extract_package_info(entry)
            if info:
                package_name, app_name = info
                projects.append(
                    AppRecord(
                        name=entry.name,
                        path=str(entry),
                        package_name=package_name,
                        app_name=app_name,
                    )
                )
            elif self.should_scan(entry.name):
                try:
                    projects.extend(self.scan_directory(entry, depth + 1))
                except OSError as e:
                    logger.debug("Could not scan %s: %s", entry, e)
        return projects

    def should_scan(self, name: str) -> bool:
        return name not in self.skip_dirs and not name.startswith(".")

    @staticmethod
    def deduplicate(projects: Iterable[AppRecord]) -> list[AppRecord]:
        seen: set[str] = set()
        unique: list[AppRecord] = []
        for project in projects:
            if project.package_name in seen:
                continue
            seen.add(project.package_name)
            unique.append(project)
        return unique
