"""Data models for hub replies, poll samples, and device records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypedDict

from .exceptions import NeosyncError

# ---------------------------------------------------------------------------
# Wire TypedDicts: match the NeoHub JSON replies
# ---------------------------------------------------------------------------


class HubSeekReply(TypedDict):
    """UDP reply to a hubseek broadcast."""

    ip: str
    device: str


class _StationRequired(TypedDict):
    device: str


class StationInfo(_StationRequired, total=False):
    """A single station entry of an INFO reply.

    The hub sends many more keys; only the ones used here are listed.
    Temperatures arrive as strings ("21.5") on most firmware.
    """

    DEVICE_TYPE: int | str
    CURRENT_SET_TEMPERATURE: str | float
    CURRENT_TEMPERATURE: str | float


class InfoResponse(TypedDict):
    """Reply to an INFO request."""

    devices: list[StationInfo]


class PersistedDevice(TypedDict):
    """Installed device as stored by the host between restarts."""

    id: str
    station_name: str
    device_type: str


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


def parse_temperature(raw: Any) -> float | None:
    """Return a hub temperature as float, or None when absent or unparseable."""
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class PollSample:
    """One station reading from a batched status fetch."""

    station_name: str
    device_type: str
    target_temperature: float | None
    measured_temperature: float | None

    @classmethod
    def from_station(cls, station: StationInfo) -> PollSample:
        """Build a sample from an INFO station entry."""
        return cls(
            station_name=station["device"],
            device_type=str(station.get("DEVICE_TYPE", "")),
            target_temperature=parse_temperature(
                station.get("CURRENT_SET_TEMPERATURE")
            ),
            measured_temperature=parse_temperature(station.get("CURRENT_TEMPERATURE")),
        )


@dataclass
class DeviceRecord:
    """Cached state of a known thermostat.

    None temperatures mean "not yet observed" and are never replaced by a
    numeric placeholder.
    """

    identity: str
    station_name: str
    device_type: str = ""
    target_temperature: float | None = None
    measured_temperature: float | None = None

    def to_persisted(self) -> PersistedDevice:
        """Return the host-persisted form of this record."""
        return {
            "id": self.identity,
            "station_name": self.station_name,
            "device_type": self.device_type,
        }


@dataclass(frozen=True)
class Candidate:
    """Read-only view of a discovered device offered for pairing."""

    identity: str
    display_name: str


@dataclass
class DiscoveryResult:
    """Result of a single hub discovery."""

    host: str
    port: int
    samples: list[PollSample] = field(default_factory=list)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a set-temperature command.

    value is the temperature actually attempted, not the one requested.
    """

    value: float | None
    error: NeosyncError | None = None

    @property
    def ok(self) -> bool:
        """Return True if the command succeeded."""
        return self.error is None
