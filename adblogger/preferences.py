"""Persistent user preferences."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as ModelValidationError

from .exceptions import AdbLoggerError
from .models import AppRecord, Severity

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "ADB_LOGGER_HOME"
DEFAULT_DIR_NAME = ".adb-logger-prefs"
PREFERENCES_FILE = "preferences.json"
MAX_RECENT_APPS = 10


class Preferences(BaseModel):
    """The stored preferences.

    Attributes:
        recent_apps: Recently monitored apps, most recent first, at most
            ``MAX_RECENT_APPS``, unique by package name.
        preferred_log_level: The level preselected in the level prompt.
        custom_scan_paths: Extra directories searched for projects.
        last_used_package: The package monitored last.
    """

    model_config = ConfigDict(populate_by_name=True)

    recent_apps: list[AppRecord] = Field(default_factory=list, alias="recentApps")
    preferred_log_level: Severity = Field(
        default=Severity.INFO, alias="preferredLogLevel"
    )
    custom_scan_paths: list[str] = Field(
        default_factory=list, alias="customScanPaths"
    )
    last_used_package: str | None = Field(default=None, alias="lastUsedPackage")

    @field_validator("preferred_log_level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Severity:
        try:
            return Severity.parse(value)
        except ValueError:
            return Severity.INFO


def default_storage_dir() -> Path:
    """Return the preferences directory.

    ``$ADB_LOGGER_HOME`` takes precedence over ``~/.adb-logger-prefs``.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_DIR_NAME


class PreferencesStore:
    """Reads and writes preferences in a JSON file.

    Every setter writes the file immediately. A missing file yields defaults;
    an unreadable or corrupt file is logged and also yields defaults.

    Args:
        storage_dir: Directory holding the preferences file. Defaults to
            :func:`default_storage_dir`.
    """

    def __init__(self, storage_dir: str | Path | None = None) -> None:
        self.storage_dir = Path(storage_dir) if storage_dir else default_storage_dir()
        self.path = self.storage_dir / PREFERENCES_FILE
        self._prefs: Preferences | None = None

    def initialize(self) -> Preferences:
        """Create the storage directory and load the stored preferences.

        Returns:
            The loaded preferences.

        Raises:
            AdbLoggerError: If the storage directory cannot be created.
        """
        if self._prefs is not None:
            return self._prefs

        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise AdbLoggerError(f"Failed to initialize storage: {e}") from e

        self._prefs = self._load()
        return self._prefs

    def _load(self) -> Preferences:
        if not self.path.exists():
            return Preferences()
        try:
            return Preferences.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ModelValidationError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, e)
            return Preferences()

    def _save(self) -> None:
        self.path.write_text(
            self.prefs.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
        )

    @property
    def prefs(self) -> Preferences:
        return self.initialize()

    def get_recent_apps(self) -> list[AppRecord]:
        return list(self.prefs.recent_apps)

    def add_recent_app(self, app: AppRecord) -> None:
        """Put an app at the front of the recent list.

        An existing entry with the same package name is replaced, and the list
        is capped at ``MAX_RECENT_APPS`` entries.
        """
        others = [
            recent
            for recent in self.prefs.recent_apps
            if recent.package_name != app.package_name
        ]
        self.prefs.recent_apps = [app, *others][:MAX_RECENT_APPS]
        self._save()

    def get_preferred_log_level(self) -> Severity:
        return self.prefs.preferred_log_level

    def set_preferred_log_level(self, level: Severity | str) -> None:
        self.prefs.preferred_log_level = Severity.parse(level)
        self._save()

    def get_custom_scan_paths(self) -> list[str]:
        return list(self.prefs.custom_scan_paths)

    def set_custom_scan_paths(self, paths: list[str]) -> None:
        self.prefs.custom_scan_paths = list(paths)
        self._save()

    def get_last_used_package(self) -> str | None:
        return self.prefs.last_used_package

    def set_last_used_package(self, package_name: str) -> None:
        self.prefs.last_used_package = package_name
        self._save()

    def clear_all(self) -> None:
        """Reset every preference to its default."""
        self.initialize()
        self._prefs = Preferences()
        if self.path.exists():
            self.path.unlink()
