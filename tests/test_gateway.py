"""Tests for temperature command validation and dispatch."""

from __future__ import annotations

import math
from unittest.mock import MagicMock

import pytest

from neosync.const import Resolution
from neosync.exceptions import (
    CommandError,
    DeviceNotFoundError,
    InvalidValueError,
    NetworkUnavailableError,
)
from neosync.gateway import CommandGateway, clamp_temperature, round_to_resolution
from neosync.poller import Poller
from neosync.registry import DeviceRegistry

from .conftest import install, make_sample


@pytest.fixture
def gateway(registry: DeviceRegistry, hub: MagicMock, poller: Poller) -> CommandGateway:
    return CommandGateway(registry, hub, poller)


def _half_gateway(
    registry: DeviceRegistry, hub: MagicMock, poller: Poller
) -> CommandGateway:
    return CommandGateway(registry, hub, poller, resolution=Resolution.HALF)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(3, 5.0), (-10, 5.0), (40, 35.0), (35.1, 35.0), (5.0, 5.0), (21.7, 21.7)],
)
def test_clamp_temperature(value: float, expected: float) -> None:
    assert clamp_temperature(value) == expected


@pytest.mark.parametrize(
    ("value", "resolution", "expected"),
    [
        (22.3, Resolution.HALF, 22.5),
        (22.2, Resolution.HALF, 22.0),
        (22.25, Resolution.HALF, 22.5),
        (22.34, Resolution.TENTH, 22.3),
        (22.36, Resolution.TENTH, 22.4),
        (22.5, Resolution.WHOLE, 23.0),
        (22.4, Resolution.WHOLE, 22.0),
        (5.0, Resolution.TENTH, 5.0),
        (35.0, Resolution.TENTH, 35.0),
    ],
)
def test_round_to_resolution(
    value: float, resolution: Resolution, expected: float
) -> None:
    assert round_to_resolution(value, resolution) == expected


async def test_set_below_minimum_clamped(
    gateway: CommandGateway, registry: DeviceRegistry, hub: MagicMock
) -> None:
    record = install(registry, "Hall")
    result = await gateway.set_target_temperature(record.identity, 3)
    assert result.ok
    assert result.value == 5.0
    hub.set_temperature.assert_awaited_once_with(5.0, "Hall")


async def test_set_above_maximum_clamped(
    gateway: CommandGateway, registry: DeviceRegistry, hub: MagicMock
) -> None:
    record = install(registry, "Hall")
    result = await gateway.set_target_temperature(record.identity, 40)
    assert result.value == 35.0
    hub.set_temperature.assert_awaited_once_with(35.0, "Hall")


@pytest.mark.parametrize("value", [0, None, 0.0])
async def test_set_falsy_value_is_invalid(
    gateway: CommandGateway,
    registry: DeviceRegistry,
    hub: MagicMock,
    value: float | None,
) -> None:
    record = install(registry, "Hall")
    result = await gateway.set_target_temperature(record.identity, value)
    assert isinstance(result.error, InvalidValueError)
    assert result.value == value
    hub.set_temperature.assert_not_called()


async def test_set_nan_is_invalid(
    gateway: CommandGateway, registry: DeviceRegistry, hub: MagicMock
) -> None:
    record = install(registry, "Hall")
    result = await gateway.set_target_temperature(record.identity, float("nan"))
    assert isinstance(result.error, InvalidValueError)
    assert result.value is not None
    assert math.isnan(result.value)
    hub.set_temperature.assert_not_called()


async def test_set_rounds_to_half_resolution(
    registry: DeviceRegistry, hub: MagicMock, poller: Poller
) -> None:
    record = install(registry, "Hall")
    gateway = _half_gateway(registry, hub, poller)
    result = await gateway.set_target_temperature(record.identity, 22.3)
    assert result.value == 22.5
    hub.set_temperature.assert_awaited_once_with(22.5, "Hall")


async def test_set_unknown_device_not_found(
    gateway: CommandGateway, hub: MagicMock
) -> None:
    result = await gateway.set_target_temperature("missing", 21.04)
    assert isinstance(result.error, DeviceNotFoundError)
    assert result.value == 21.0
    hub.set_temperature.assert_not_called()


async def test_set_uses_current_station_name(
    gateway: CommandGateway, registry: DeviceRegistry, hub: MagicMock
) -> None:
    record = install(registry, "Hall")
    record.station_name = "Hallway"
    await gateway.set_target_temperature(record.identity, 20)
    hub.set_temperature.assert_awaited_once_with(20.0, "Hallway")


@pytest.mark.parametrize(
    "error", [NetworkUnavailableError("down"), CommandError("rejected")]
)
async def test_set_network_error_reports_attempted_value(
    gateway: CommandGateway,
    registry: DeviceRegistry,
    hub: MagicMock,
    error: Exception,
) -> None:
    record = install(registry, "Hall")
    hub.set_temperature.side_effect = error
    result = await gateway.set_target_temperature(record.identity, 40)
    assert result.value == 35.0
    assert result.error is error
    assert not result.ok


async def test_set_does_not_touch_cache(
    gateway: CommandGateway, registry: DeviceRegistry
) -> None:
    record = install(registry, "Hall", target=19.0)
    await gateway.set_target_temperature(record.identity, 22)
    assert record.target_temperature == 19.0


async def test_get_target_polls_first(
    gateway: CommandGateway, registry: DeviceRegistry, hub: MagicMock
) -> None:
    record = install(registry, "Hall", target=19.0, measured=18.0)
    hub.fetch_status.return_value = [make_sample("Hall", target=22.5, measured=18.0)]
    assert await gateway.get_target_temperature(record.identity) == 22.5
    hub.fetch_status.assert_awaited_once()


async def test_get_measured_polls_first(
    gateway: CommandGateway, registry: DeviceRegistry, hub: MagicMock
) -> None:
    record = install(registry, "Hall", target=19.0, measured=18.0)
    hub.fetch_status.return_value = [make_sample("Hall", target=19.0, measured=18.44)]
    assert await gateway.get_measured_temperature(record.identity) == 18.4


async def test_get_returns_cache_when_poll_fails(
    gateway: CommandGateway, registry: DeviceRegistry, hub: MagicMock
) -> None:
    record = install(registry, "Hall", target=19.0, measured=18.0)
    hub.fetch_status.side_effect = NetworkUnavailableError("down")
    assert await gateway.get_target_temperature(record.identity) == 19.0


async def test_get_unobserved_returns_none(
    gateway: CommandGateway, registry: DeviceRegistry
) -> None:
    record = install(registry, "Hall")
    assert await gateway.get_measured_temperature(record.identity) is None


async def test_get_unknown_raises(gateway: CommandGateway) -> None:
    with pytest.raises(DeviceNotFoundError):
        await gateway.get_target_temperature("missing")
    with pytest.raises(DeviceNotFoundError):
        await gateway.get_measured_temperature("missing")
