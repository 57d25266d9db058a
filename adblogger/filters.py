"""Line filtering by severity marker and package name."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .models import Severity

# Markers kept for each minimum severity. Each set holds the level itself and
# every more severe level, so the sets nest from FATAL up to VERBOSE.
INCLUSION_SETS: dict[Severity, tuple[str, ...]] = {
    Severity.VERBOSE: (" V/", " D/", " I/", " W/", " E/", " F/"),
    Severity.DEBUG: (" D/", " I/", " W/", " E/", " F/"),
    Severity.INFO: (" I/", " W/", " E/", " F/"),
    Severity.WARNING: (" W/", " E/", " F/"),
    Severity.ERROR: (" E/", " F/"),
    Severity.FATAL: (" F/",),
}

DEFAULT_SEVERITY = Severity.INFO


def inclusion_set(min_severity: Any) -> tuple[str, ...]:
    """Return the markers accepted for a minimum severity.

    Args:
        min_severity: A Severity, a level letter or name. Anything that does not
            name a level falls back to INFO.

    Returns:
        The tuple of markers, each with its leading space.
    """
    try:
        severity = Severity.parse(min_severity)
    except (TypeError, ValueError):
        severity = DEFAULT_SEVERITY
    return INCLUSION_SETS[severity]


def matches(line: str, min_severity: Any) -> bool:
    """Check whether a raw logcat line is at or above a minimum severity.

    The line is searched for the markers of the inclusion set as plain
    substrings. The leading space in each marker keeps text such as
    ``"CODE/"`` from counting as a ``" E/"`` marker.

    Args:
        line: The raw line.
        min_severity: The threshold. Unknown values behave like INFO.

    Returns:
        True if the line carries a marker from the inclusion set.
    """
    return any(marker in line for marker in inclusion_set(min_severity))


class Condition(ABC):
    """Abstract base class for line conditions."""

    @abstractmethod
    def check(self, line: str) -> bool:
        """Check if the line satisfies the condition."""
        ...

    def __and__(self, other: Condition) -> Condition:
        return And(self, other)


class And(Condition):
    """Logical AND combination of conditions."""

    def __init__(self, *conditions: Condition) -> None:
        self.conditions = conditions

    def check(self, line: str) -> bool:
        return all(c.check(line) for c in self.conditions)


class PackageContains(Condition):
    """Matches lines that mention a package name anywhere."""

    def __init__(self, package: str) -> None:
        self.package = package

    def check(self, line: str) -> bool:
        return self.package in line


class SeverityAtLeast(Condition):
    """Matches lines whose severity marker is at or above a threshold."""

    def __init__(self, min_severity: Any) -> None:
        self.markers = inclusion_set(min_severity)

    def check(self, line: str) -> bool:
        return any(marker in line for marker in self.markers)


class LineFilter:
    """The per-line filter applied by the log pipeline.

    When ``package`` is given, lines must contain it as a substring. This is
    used when logcat could not be scoped to a process ID and therefore streams
    the whole device log. Lines must also pass the severity threshold.

    Examples:
        >>> f = LineFilter(Severity.WARNING, package="com.example.app")
        >>> f("01-01 00:00:00.000 E/com.example.app: boom")
        True
    """

    def __init__(self, min_severity: Any = DEFAULT_SEVERITY, package: str | None = None) -> None:
        self.package = package
        self.condition: Condition = SeverityAtLeast(min_severity)
        if package:
            self.condition = PackageContains(package) & self.condition

    def __call__(self, line: str) -> bool:
        return self.condition.check(line)
