"""Validation and dispatch of temperature commands."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from .const import MAX_TEMPERATURE, MIN_TEMPERATURE, Partition, Resolution
from .exceptions import DeviceNotFoundError, InvalidValueError, NeosyncError
from .models import CommandResult

if TYPE_CHECKING:
    from .client import NeoHubCapability
    from .models import DeviceRecord
    from .poller import Poller
    from .registry import DeviceRegistry

_LOGGER = logging.getLogger(__name__)


def clamp_temperature(value: float) -> float:
    """Limit a setpoint to the range the thermostats accept."""
    if value < MIN_TEMPERATURE:
        return MIN_TEMPERATURE
    if value > MAX_TEMPERATURE:
        return MAX_TEMPERATURE
    return value


def round_to_resolution(value: float, resolution: Resolution | float) -> float:
    """Round half-up to the nearest multiple of resolution."""
    step = float(resolution)
    steps = math.floor(value / step + 0.5)
    # Trim float noise such as 22.500000000000004.
    return round(steps * step, 2)


class CommandGateway:
    """Read and write the temperatures of installed thermostats."""

    def __init__(
        self,
        registry: DeviceRegistry,
        client: NeoHubCapability,
        poller: Poller,
        *,
        resolution: Resolution | float = Resolution.TENTH,
    ) -> None:
        self._registry = registry
        self._client = client
        self._poller = poller
        self._resolution = resolution

    @property
    def resolution(self) -> Resolution | float:
        """Return the setpoint resolution used for rounding."""
        return self._resolution

    async def set_target_temperature(
        self, identity: str, value: float | None
    ) -> CommandResult:
        """
        Validate, clamp, and send a new target temperature.

        The result always carries the value that was actually attempted.
        Errors are returned in the result rather than raised.
        """
        if not value or math.isnan(value):
            return CommandResult(
                value, InvalidValueError(f"Invalid target temperature: {value!r}")
            )
        rounded = round_to_resolution(clamp_temperature(value), self._resolution)
        record = self._registry.lookup(identity, Partition.INSTALLED)
        if record is None:
            return CommandResult(rounded, DeviceNotFoundError(f"Unknown device {identity}"))
        try:
            await self._client.set_temperature(rounded, record.station_name)
        except NeosyncError as exc:
            _LOGGER.warning(
                "Setting %s to %s failed: %s", record.station_name, rounded, exc
            )
            return CommandResult(rounded, exc)
        _LOGGER.info("Set %s to %s", record.station_name, rounded)
        return CommandResult(rounded)

    async def get_target_temperature(self, identity: str) -> float | None:
        """
        Return the target temperature after a fresh poll.

        Raises:
            DeviceNotFoundError: If identity is not installed.

        """
        return (await self._refreshed(identity)).target_temperature

    async def get_measured_temperature(self, identity: str) -> float | None:
        """
        Return the measured temperature after a fresh poll.

        Raises:
            DeviceNotFoundError: If identity is not installed.

        """
        return (await self._refreshed(identity)).measured_temperature

    async def _refreshed(self, identity: str) -> DeviceRecord:
        await self._poller.refresh()
        record = self._registry.lookup(identity, Partition.INSTALLED)
        if record is None:
            raise DeviceNotFoundError(f"Unknown device {identity}")
        return record
