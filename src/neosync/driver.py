"""Host-facing driver tying discovery, pairing, polling, and commands together."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from .const import DISCOVERY_TIMEOUT, POLL_INTERVAL, Resolution
from .discovery import DiscoveryService
from .exceptions import PairingError
from .gateway import CommandGateway
from .models import DeviceRecord
from .pairing import PairingSession
from .poller import Poller
from .registry import DeviceRegistry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from typing import Self

    from .client import NeoHubCapability
    from .models import Candidate, CommandResult, PersistedDevice

    RealtimeCallback = Callable[[str, str, float | None], None]

_LOGGER = logging.getLogger(__name__)


class NeoDriver:
    """
    Thermostat driver as seen by a home-automation host.

    Owns the device registry; all reads and writes of device records go
    through this object and the services it creates. Call init() with the
    devices the host persisted, then use the pairing and capability methods.
    Realtime change events are delivered to callbacks registered with
    add_realtime_callback().
    """

    def __init__(
        self,
        client: NeoHubCapability,
        *,
        resolution: Resolution | float = Resolution.TENTH,
        poll_interval: float = POLL_INTERVAL,
        discovery_timeout: float = DISCOVERY_TIMEOUT,
    ) -> None:
        self._client = client
        self.registry = DeviceRegistry()
        self._discovery = DiscoveryService(
            self.registry, client, timeout=discovery_timeout
        )
        self._poller = Poller(
            self.registry, client, self._dispatch_realtime, interval=poll_interval
        )
        self._gateway = CommandGateway(
            self.registry, client, self._poller, resolution=resolution
        )
        self._session: PairingSession | None = None
        self._discovery_task: asyncio.Task[list[DeviceRecord]] | None = None
        self._realtime_callbacks: list[RealtimeCallback] = []

    @property
    def poller(self) -> Poller:
        """Return the background poller."""
        return self._poller

    def add_realtime_callback(self, callback: RealtimeCallback) -> Callable[[], None]:
        """Register a change callback. Returns a callable to unregister it."""
        self._realtime_callbacks.append(callback)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._realtime_callbacks.remove(callback)

        return _remove

    def _dispatch_realtime(
        self, identity: str, field_name: str, value: float | None
    ) -> None:
        for cb in self._realtime_callbacks:
            try:
                cb(identity, field_name, value)
            except Exception:  # noqa: PERF203
                _LOGGER.exception("Error in realtime callback")

    # --- Lifecycle ---

    async def init(
        self, persisted: Iterable[PersistedDevice], *, discover: bool = True
    ) -> None:
        """
        Restore installed devices and start polling.

        Readings of restored devices are unknown until the first poll. With
        discover=True a background discovery pass locates the hub and
        offers any new stations as candidates.
        """
        for device in persisted:
            record = DeviceRecord(
                identity=device["id"],
                station_name=device.get("station_name", ""),
                device_type=device.get("device_type", ""),
            )
            self.registry.insert_installed(record)
        _LOGGER.info(
            "Restored %d installed device(s)", len(self.registry.installed_records())
        )
        if discover:
            self._discovery_task = asyncio.create_task(self._startup_discovery())
        elif self.registry.has_installed:
            self._poller.start()

    async def _startup_discovery(self) -> list[DeviceRecord]:
        """Locate the hub before the first poll so it has an address to use."""
        added = await self._discovery.run()
        if self.registry.has_installed:
            self._poller.start()
        return added

    async def close(self) -> None:
        """Stop background discovery and polling."""
        if self._discovery_task is not None and not self._discovery_task.done():
            self._discovery_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._discovery_task
        self._discovery_task = None
        await self._poller.stop()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # --- Pairing ---

    async def list_devices(self) -> list[Candidate]:
        """Start a pairing attempt and return the stations that can be added."""
        if self._discovery_task is not None and not self._discovery_task.done():
            # Let the startup pass finish so it cannot clear our candidates.
            await self._discovery_task
        self._session = PairingSession(
            self.registry, self._discovery, on_confirm=self._on_installed
        )
        return await self._session.start()

    def add_device(self, identity: str) -> DeviceRecord:
        """
        Install a station offered by list_devices().

        Raises:
            PairingError: If no pairing attempt was started.
            DeviceNotFoundError: If identity is no longer offered.

        """
        if self._session is None:
            raise PairingError("list_devices() must be called before add_device()")
        return self._session.confirm(identity)

    def _on_installed(self, record: DeviceRecord) -> None:
        self._poller.start()

    def deleted(self, identity: str) -> None:
        """Forget an installed device. Unknown identities are ignored."""
        record = self.registry.remove_installed(identity)
        if record is not None:
            _LOGGER.info("Removed %s (%s)", record.station_name, identity)

    def installed_devices(self) -> list[PersistedDevice]:
        """Return the installed devices in the form the host persists."""
        return [record.to_persisted() for record in self.registry.installed_records()]

    # --- Capabilities ---

    async def get_target_temperature(self, identity: str) -> float | None:
        """Return the target temperature after a fresh poll."""
        return await self._gateway.get_target_temperature(identity)

    async def set_target_temperature(
        self, identity: str, value: float | None
    ) -> CommandResult:
        """Send a new target temperature; see CommandGateway."""
        return await self._gateway.set_target_temperature(identity, value)

    async def get_measured_temperature(self, identity: str) -> float | None:
        """Return the measured temperature after a fresh poll."""
        return await self._gateway.get_measured_temperature(identity)
