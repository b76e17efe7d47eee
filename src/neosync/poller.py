"""Periodic status polling and change detection for installed thermostats."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from .const import (
    MEASURE_TEMPERATURE,
    MEASURED_PRECISION,
    POLL_INTERVAL,
    TARGET_TEMPERATURE,
    Partition,
)
from .exceptions import NeosyncError
from .identity import generate_identity

if TYPE_CHECKING:
    from collections.abc import Callable

    from .client import NeoHubCapability
    from .models import DeviceRecord, PollSample
    from .registry import DeviceRegistry

    ChangeCallback = Callable[[str, str, float | None], None]

_LOGGER = logging.getLogger(__name__)


def _round_measured(value: float | None) -> float | None:
    """Round a measured reading to the precision used for change detection."""
    if value is None:
        return None
    return round(value, MEASURED_PRECISION)


class Poller:
    """
    Keep installed device records in step with the hub.

    The thermostats never push updates, so every cycle fetches all stations
    in one request, reports changed fields to the observer and then stores
    the new values. Only one cycle runs at a time; refresh() joins the cycle
    in flight instead of starting a second one.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        client: NeoHubCapability,
        on_change: ChangeCallback,
        *,
        interval: float = POLL_INTERVAL,
    ) -> None:
        self._registry = registry
        self._client = client
        self._on_change = on_change
        self._interval = interval
        self._cycle: asyncio.Task[bool] | None = None
        self._run_task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Return True if the periodic task is active."""
        return self._run_task is not None and not self._run_task.done()

    def start(self) -> None:
        """Start polling in the background. Calling it again is a no-op."""
        if self.running:
            return
        _LOGGER.info("Starting poller (every %ss)", self._interval)
        self._run_task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        """Stop the periodic task and any cycle in flight."""
        for task in (self._run_task, self._cycle):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._run_task = None
        self._cycle = None

    async def refresh(self) -> bool:
        """
        Wait for a poll cycle to finish.

        Joins the cycle in flight or starts a new one. Returns False if the
        cycle could not reach the hub.
        """
        if self._cycle is None or self._cycle.done():
            self._cycle = asyncio.create_task(self._poll_cycle())
        return await asyncio.shield(self._cycle)

    async def _run_loop(self) -> None:
        """Poll forever; a failed cycle never ends the loop."""
        try:
            while True:
                try:
                    await self.refresh()
                except Exception:
                    _LOGGER.exception("Unexpected error during poll cycle")
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            return

    async def _poll_cycle(self) -> bool:
        """Fetch, diff, and store one round of readings."""
        if not self._registry.has_installed:
            return True
        try:
            samples = await self._client.fetch_status()
        except NeosyncError as exc:
            _LOGGER.warning("Skipping poll cycle: %s", exc)
            return False
        for sample in samples:
            identity = generate_identity(sample.station_name, sample.device_type)
            record = self._registry.lookup(identity, Partition.INSTALLED)
            if record is None:
                continue
            self._apply(record, sample)
        return True

    def _apply(self, record: DeviceRecord, sample: PollSample) -> None:
        """Report changes for one record, then update it."""
        target = sample.target_temperature
        # An unreadable field keeps the last observed value.
        if target is not None and target != record.target_temperature:
            self._emit(record.identity, TARGET_TEMPERATURE, target)
            record.target_temperature = target

        measured = _round_measured(sample.measured_temperature)
        if measured is not None and measured != _round_measured(
            record.measured_temperature
        ):
            self._emit(record.identity, MEASURE_TEMPERATURE, measured)
            record.measured_temperature = measured

        # Commands address stations by name, which can change on reconnect.
        record.station_name = sample.station_name

    def _emit(self, identity: str, field_name: str, value: float | None) -> None:
        _LOGGER.debug("%s %s -> %s", identity, field_name, value)
        try:
            self._on_change(identity, field_name, value)
        except Exception:
            _LOGGER.exception("Error in change callback")
