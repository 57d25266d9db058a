"""Data models for log severities and annotated log lines."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from rich.text import Text

_RANKS = {"V": 0, "D": 1, "I": 2, "W": 3, "E": 4, "F": 5}


class Severity(str, Enum):
    """Logcat severity level, ordered from least to most severe.

    Members compare by severity rank, not by their letter, so
    ``Severity.WARNING > Severity.INFO`` holds.
    """

    VERBOSE = "V"
    DEBUG = "D"
    INFO = "I"
    WARNING = "W"
    ERROR = "E"
    FATAL = "F"

    @property
    def rank(self) -> int:
        return _RANKS[self.value]

    @property
    def marker(self) -> str:
        """The token logcat's ``time`` format puts before the tag, e.g. ``" E/"``."""
        return f" {self.value}/"

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        """Parse a severity from its letter or its name, in any case.

        Args:
            value: A letter such as ``"w"``, a name such as ``"Warning"``, or a
                Severity.

        Returns:
            The matching Severity.

        Raises:
            ValueError: If the value names no severity.
        """
        if isinstance(value, Severity):
            return value
        text = str(value).strip()
        if text.upper() in _RANKS:
            return cls(text.upper())
        try:
            return cls[text.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None

    def _compare(self, other: Any) -> int | None:
        if not isinstance(other, Severity):
            return None
        return self.rank - other.rank

    def __lt__(self, other: Any) -> bool:
        diff = self._compare(other)
        if diff is None:
            return NotImplemented
        return diff < 0

    def __le__(self, other: Any) -> bool:
        diff = self._compare(other)
        if diff is None:
            return NotImplemented
        return diff <= 0

    def __gt__(self, other: Any) -> bool:
        diff = self._compare(other)
        if diff is None:
            return NotImplemented
        return diff > 0

    def __ge__(self, other: Any) -> bool:
        diff = self._compare(other)
        if diff is None:
            return NotImplemented
        return diff >= 0


class AnnotatedLine(BaseModel):
    """A raw logcat line tagged with the display style of its severity.

    Attributes:
        text: The raw line, without its trailing newline.
        severity: The severity whose marker was found, or None.
        style: A rich style name, or None to print the line as-is.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    severity: Severity | None = None
    style: str | None = None

    def render(self) -> Text:
        """Build the rich Text used to display this line."""
        return Text(self.text, style=self.style or "")
