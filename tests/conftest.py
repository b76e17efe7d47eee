"""Shared fixtures for neosync tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from neosync.const import DEFAULT_PORT
from neosync.identity import generate_identity
from neosync.models import DeviceRecord, DiscoveryResult, PollSample
from neosync.poller import Poller
from neosync.registry import DeviceRegistry

HUB_IP = "192.168.1.50"


def make_sample(
    station_name: str,
    device_type: str = "1",
    target: float | None = 21.0,
    measured: float | None = 20.0,
) -> PollSample:
    """Build a poll sample for a station."""
    return PollSample(
        station_name=station_name,
        device_type=device_type,
        target_temperature=target,
        measured_temperature=measured,
    )


def install(
    registry: DeviceRegistry,
    station_name: str,
    device_type: str = "1",
    target: float | None = None,
    measured: float | None = None,
) -> DeviceRecord:
    """Add an installed record to registry and return it."""
    record = DeviceRecord(
        identity=generate_identity(station_name, device_type),
        station_name=station_name,
        device_type=device_type,
        target_temperature=target,
        measured_temperature=measured,
    )
    assert registry.insert_installed(record)
    return record


@pytest.fixture
def hub() -> MagicMock:
    """Return a fake NeoHub capability with no stations.

    discover(), fetch_status() and set_temperature() are AsyncMocks so
    tests can change return values or side effects per case.
    """
    mock = MagicMock()
    mock.discover = AsyncMock(return_value=DiscoveryResult(HUB_IP, DEFAULT_PORT, []))
    mock.fetch_status = AsyncMock(return_value=[])
    mock.set_temperature = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def registry() -> DeviceRegistry:
    """Return an empty registry."""
    return DeviceRegistry()


@pytest.fixture
def changes() -> list[tuple[str, str, float | None]]:
    """Collect change notifications emitted by a poller."""
    return []


@pytest.fixture
def poller(
    registry: DeviceRegistry,
    hub: MagicMock,
    changes: list[tuple[str, str, float | None]],
) -> Poller:
    """Return a poller wired to the fake hub, not yet started."""
    return Poller(
        registry,
        hub,
        lambda identity, field, value: changes.append((identity, field, value)),
        interval=0.01,
    )
