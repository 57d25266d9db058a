"""Severity-based coloring of logcat lines."""

from __future__ import annotations

from .models import AnnotatedLine, Severity

# Checked in order; the first marker found decides the style.
COLOR_TABLE: tuple[tuple[Severity, str], ...] = (
    (Severity.FATAL, "magenta"),
    (Severity.ERROR, "red"),
    (Severity.WARNING, "yellow"),
    (Severity.INFO, "cyan"),
    (Severity.DEBUG, "green"),
    (Severity.VERBOSE, "bright_black"),
)


def annotate(line: str) -> AnnotatedLine:
    """Tag a raw line with the style of the most severe marker it contains.

    Only one style is applied. A line containing both ``" E/"`` and ``" W/"``
    is styled as an error. Lines without any marker pass through unstyled.

    Args:
        line: The raw line.

    Returns:
        The annotated line.
    """
    for severity, style in COLOR_TABLE:
        if severity.marker in line:
            return AnnotatedLine(text=line, severity=severity, style=style)
    return AnnotatedLine(text=line)
