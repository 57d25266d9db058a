"""Data models for devices and selectable apps."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Device(BaseModel):
    """A device line reported by ``adb devices``."""

    id: str
    status: str


class DeviceStatus(BaseModel):
    """Result of a device enumeration.

    Attributes:
        connected: True if at least one device is in the ``device`` state.
        devices: The devices in the ``device`` state.
        count: Number of entries in ``devices``.
    """

    connected: bool = False
    devices: list[Device] = Field(default_factory=list)
    count: int = 0

    @classmethod
    def from_devices(cls, devices: list[Device]) -> DeviceStatus:
        return cls(connected=bool(devices), devices=devices, count=len(devices))


class AppRecord(BaseModel):
    """An app the user can pick for monitoring.

    Records come from project discovery, from the recent apps list, or from a
    package name typed in by hand (in which case ``path`` is None). Field
    aliases keep the camelCase keys used in the preferences file.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    package_name: str = Field(alias="packageName")
    path: str | None = None
    app_name: str | None = Field(default=None, alias="appName")

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.package_name})"
