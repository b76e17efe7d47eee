"""Tests for the discovery service."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

from neosync.const import Partition
from neosync.discovery import DiscoveryService
from neosync.exceptions import NetworkUnavailableError
from neosync.identity import generate_identity
from neosync.models import DeviceRecord, DiscoveryResult
from neosync.registry import DeviceRegistry

from .conftest import HUB_IP, install, make_sample


def _result(*names: str) -> DiscoveryResult:
    return DiscoveryResult(HUB_IP, 4242, [make_sample(name) for name in names])


async def test_discovery_adds_candidates_without_readings(
    registry: DeviceRegistry, hub: MagicMock
) -> None:
    hub.discover.return_value = _result("Kitchen", "Hall")
    added = await DiscoveryService(registry, hub).run()

    assert [r.station_name for r in added] == ["Kitchen", "Hall"]
    record = registry.lookup(generate_identity("Kitchen", "1"), Partition.CANDIDATES)
    assert record is not None
    assert record.target_temperature is None
    assert record.measured_temperature is None


async def test_discovery_skips_installed(
    registry: DeviceRegistry, hub: MagicMock
) -> None:
    installed = install(registry, "Kitchen", target=20.0)
    hub.discover.return_value = _result("Kitchen", "Hall")
    added = await DiscoveryService(registry, hub).run()

    assert [r.station_name for r in added] == ["Hall"]
    assert registry.lookup(installed.identity, Partition.CANDIDATES) is None
    assert registry.lookup(installed.identity) is installed
    assert installed.target_temperature == 20.0


async def test_discovery_dedups_repeated_replies(
    registry: DeviceRegistry, hub: MagicMock
) -> None:
    hub.discover.return_value = _result("Kitchen", "Kitchen", "Kitchen")
    added = await DiscoveryService(registry, hub).run()
    assert len(added) == 1
    assert len(registry.candidate_records()) == 1


async def test_discovery_clears_previous_candidates(
    registry: DeviceRegistry, hub: MagicMock
) -> None:
    registry.insert_candidate(DeviceRecord(identity="ghost", station_name="Ghost"))
    hub.discover.return_value = _result("Kitchen")
    await DiscoveryService(registry, hub).run()
    names = [r.station_name for r in registry.candidate_records()]
    assert names == ["Kitchen"]


async def test_discovery_zero_devices(
    registry: DeviceRegistry, hub: MagicMock
) -> None:
    added = await DiscoveryService(registry, hub).run()
    assert added == []
    assert registry.candidate_records() == []


async def test_discovery_timeout_returns_empty(
    registry: DeviceRegistry, hub: MagicMock
) -> None:
    async def _never() -> DiscoveryResult:
        await asyncio.Event().wait()
        raise AssertionError("unreachable")

    hub.discover = AsyncMock(side_effect=_never)
    registry.insert_candidate(DeviceRecord(identity="ghost", station_name="Ghost"))
    added = await DiscoveryService(registry, hub, timeout=0.05).run()
    assert added == []
    assert registry.candidate_records() == []


async def test_discovery_network_error_returns_empty(
    registry: DeviceRegistry, hub: MagicMock
) -> None:
    hub.discover.side_effect = NetworkUnavailableError("no route")
    added = await DiscoveryService(registry, hub).run()
    assert added == []


async def test_discovery_reply_before_timeout(
    registry: DeviceRegistry, hub: MagicMock
) -> None:
    async def _slow() -> DiscoveryResult:
        await asyncio.sleep(0.01)
        return _result("Kitchen")

    hub.discover = AsyncMock(side_effect=_slow)
    added = await DiscoveryService(registry, hub, timeout=1).run()
    assert [r.station_name for r in added] == ["Kitchen"]
