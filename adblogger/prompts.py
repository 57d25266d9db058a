"""Interactive menus for choosing what to monitor."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.prompt import Prompt

from .exceptions import ValidationError
from .models import AppRecord, Device, Severity
from .preferences import PreferencesStore
from .utils import validate_package_name

CUSTOM = "custom"
CONFIGURE = "configure"

LEVEL_CHOICES: list[tuple[str, Any] | str] = [
    ("Verbose (V) - All logs", Severity.VERBOSE),
    ("Debug (D) - Debug and above", Severity.DEBUG),
    ("Info (I) - Info and above", Severity.INFO),
    ("Warning (W) - Warnings and errors", Severity.WARNING),
    ("Error (E) - Errors only", Severity.ERROR),
    ("Fatal (F) - Fatal errors only", Severity.FATAL),
]


def _console(console: Console | None) -> Console:
    return console or Console()


def choose(
    message: str,
    entries: Sequence[tuple[str, Any] | str],
    default: Any = None,
    console: Console | None = None,
) -> Any:
    """Show a numbered menu and return the value of the chosen entry.

    Args:
        message: The question shown below the menu.
        entries: ``(label, value)`` pairs. Plain strings are printed as section
            headings and cannot be chosen.
        default: Value preselected when the user just presses enter.
        console: Console to print on.

    Returns:
        The value of the chosen entry.
    """
    console = _console(console)
    values: list[Any] = []
    default_choice: str | None = None

    for entry in entries:
        if isinstance(entry, str):
            console.print(f"[dim]--- {entry} ---[/dim]")
            continue
        label, value = entry
        values.append(value)
        number = str(len(values))
        if default is not None and value == default and default_choice is None:
            default_choice = number
        console.print(f"  [cyan]{number}[/cyan]. {label}", highlight=False)

    choices = [str(i) for i in range(1, len(values) + 1)]
    if default_choice is None:
        answer = Prompt.ask(message, choices=choices, show_choices=False, console=console)
    else:
        answer = Prompt.ask(
            message,
            choices=choices,
            default=default_choice,
            show_choices=False,
            console=console,
        )
    return values[int(answer) - 1]


def prompt_package_name(console: Console | None = None) -> str:
    """Ask for a package name until a valid one is entered."""
    console = _console(console)
    while True:
        raw = Prompt.ask("Enter package name", console=console)
        try:
            return validate_package_name(raw)
        except ValidationError as e:
            console.print(f"[red]{e}[/red]")


def custom_app(console: Console | None = None) -> AppRecord:
    return AppRecord(
        name="Custom App", package_name=prompt_package_name(console), path=None
    )


def select_app(
    projects: Sequence[AppRecord],
    preferences: PreferencesStore,
    console: Console | None = None,
) -> AppRecord:
    """Let the user pick a recent app, a discovered project or a custom package.

    With neither recent apps nor projects, the package name is asked for
    directly. Choosing "Configure scan directories" opens the scan path menu
    and then shows the app menu again.
    """
    console = _console(console)

    while True:
        recent_apps = preferences.get_recent_apps()
        if not recent_apps and not projects:
            return custom_app(console)

        entries: list[tuple[str, Any] | str] = []
        if recent_apps:
            entries.append("Recent Apps")
            entries.extend((app.display_name, app) for app in recent_apps)
        if projects:
            if recent_apps:
                entries.append("Discovered Projects")
            entries.extend((project.display_name, project) for project in projects)
        entries.append("Options")
        entries.append(("Enter custom package name", CUSTOM))
        entries.append(("Configure scan directories", CONFIGURE))

        selected = choose("Select an app to monitor", entries, console=console)
        if selected == CUSTOM:
            return custom_app(console)
        if selected == CONFIGURE:
            configure_scan_paths(preferences, console)
            continue
        return selected


def select_log_level(
    default: Severity = Severity.INFO, console: Console | None = None
) -> Severity:
    return choose("Select log level", LEVEL_CHOICES, default=default, console=console)


def configure_scan_paths(
    preferences: PreferencesStore, console: Console | None = None
) -> None:
    """Add, view or clear the custom scan paths."""
    console = _console(console)
    current = preferences.get_custom_scan_paths()

    action = choose(
        "Configure scan paths",
        [
            ("Add new path", "add"),
            ("View current paths", "view"),
            ("Clear all custom paths", "clear"),
            ("Back to app selection", "back"),
        ],
        console=console,
    )

    if action == "add":
        new_path = ""
        while not new_path:
            new_path = Prompt.ask("Enter directory path to scan", console=console).strip()
            if not new_path:
                console.print("[red]Path is required[/red]")
        preferences.set_custom_scan_paths([*current, new_path])
        console.print("[green]✅ Path added successfully[/green]")
    elif action == "view":
        console.print("[cyan]Current custom scan paths:[/cyan]")
        if not current:
            console.print("[dim]No custom paths configured[/dim]")
        for index, path in enumerate(current, start=1):
            console.print(f"[cyan]  {index}. {path}[/cyan]", highlight=False)
    elif action == "clear":
        preferences.set_custom_scan_paths([])
        console.print("[green]✅ All custom paths cleared[/green]")


def select_device(devices: Sequence[Device], console: Console | None = None) -> Device:
    """Ask which of several connected devices to stream from."""
    if len(devices) == 1:
        return devices[0]
    return choose(
        "Select a device",
        [(device.id, device) for device in devices],
        default=devices[0],
        console=console,
    )
