"""Tests for data models."""

import pytest
from pydantic import ValidationError as ModelValidationError

from adblogger.models import AnnotatedLine, AppRecord, Device, DeviceStatus, Severity


def test_severity_total_order() -> None:
    """Test that severities are ordered from verbose to fatal."""
    ordered = [
        Severity.VERBOSE,
        Severity.DEBUG,
        Severity.INFO,
        Severity.WARNING,
        Severity.ERROR,
        Severity.FATAL,
    ]
    assert sorted(reversed(ordered)) == ordered
    assert Severity.WARNING > Severity.INFO
    assert Severity.ERROR >= Severity.ERROR
    assert Severity.DEBUG < Severity.INFO
    # Letters alone would sort "E" before "I"
    assert Severity.ERROR > Severity.INFO


def test_severity_marker() -> None:
    """Test the logcat marker of each level."""
    assert Severity.ERROR.marker == " E/"
    assert Severity.VERBOSE.marker == " V/"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("W", Severity.WARNING),
        ("w", Severity.WARNING),
        ("warning", Severity.WARNING),
        ("Fatal", Severity.FATAL),
        (" i ", Severity.INFO),
        (Severity.DEBUG, Severity.DEBUG),
    ],
)
def test_severity_parse(value, expected) -> None:
    """Test parsing letters and names."""
    assert Severity.parse(value) is expected


def test_severity_parse_unknown() -> None:
    """Test that unknown levels are rejected."""
    with pytest.raises(ValueError, match="Unknown log level"):
        Severity.parse("loud")


def test_severity_usable_as_dict_key() -> None:
    """Test that severities hash consistently."""
    table = {Severity.INFO: "info"}
    assert table[Severity.parse("I")] == "info"


def test_annotated_line_is_frozen() -> None:
    """Test that annotated lines cannot be changed."""
    line = AnnotatedLine(text="x E/Tag: boom", severity=Severity.ERROR, style="red")

    with pytest.raises(ModelValidationError):
        line.text = "other"


def test_annotated_line_render() -> None:
    """Test rendering to rich text."""
    text = AnnotatedLine(text="x E/Tag: boom", severity=Severity.ERROR, style="red").render()
    assert text.plain == "x E/Tag: boom"
    assert str(text.style) == "red"

    plain = AnnotatedLine(text="no marker").render()
    assert plain.plain == "no marker"


def test_app_record_aliases() -> None:
    """Test that app records accept and dump camelCase keys."""
    app = AppRecord.model_validate(
        {"name": "Demo", "packageName": "com.demo", "path": "/p", "appName": "Demo App"}
    )
    assert app.package_name == "com.demo"
    assert app.app_name == "Demo App"
    assert app.display_name == "Demo (com.demo)"

    dumped = app.model_dump(by_alias=True)
    assert dumped["packageName"] == "com.demo"

    by_field = AppRecord(name="Custom App", package_name="com.custom")
    assert by_field.path is None


def test_device_status_from_devices() -> None:
    """Test building a device status."""
    status = DeviceStatus.from_devices([Device(id="emulator-5554", status="device")])
    assert status.connected is True
    assert status.count == 1

    empty = DeviceStatus.from_devices([])
    assert empty.connected is False
    assert empty.count == 0
    assert empty.devices == []
