"""Pairing workflow: offer discovered thermostats and install the chosen ones."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .const import Partition
from .exceptions import DeviceNotFoundError
from .models import Candidate

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .discovery import DiscoveryService
    from .models import DeviceRecord
    from .registry import DeviceRegistry

_LOGGER = logging.getLogger(__name__)


class PairingSession:
    """A single pairing attempt started by the host."""

    def __init__(
        self,
        registry: DeviceRegistry,
        discovery: DiscoveryService,
        *,
        on_confirm: Callable[[DeviceRecord], None] | None = None,
    ) -> None:
        self._registry = registry
        self._discovery = discovery
        self._on_confirm = on_confirm

    async def start(self) -> list[Candidate]:
        """Run a fresh discovery pass and return the resulting candidates."""
        await self._discovery.run()
        return self.list_candidates()

    def list_candidates(self) -> list[Candidate]:
        """Return the current candidates. Never changes the registry."""
        return [
            Candidate(identity=record.identity, display_name=record.station_name)
            for record in self._registry.candidate_records()
        ]

    def confirm(self, identity: str) -> DeviceRecord:
        """
        Install a candidate.

        Raises:
            DeviceNotFoundError: If identity is not a current candidate, for
                example because a newer discovery pass cleared the list.

        """
        record = self._registry.promote(identity)
        if record is None:
            if self._registry.lookup(identity, Partition.INSTALLED) is not None:
                raise DeviceNotFoundError(f"Device {identity} is already installed")
            raise DeviceNotFoundError(f"No pairing candidate {identity}")
        _LOGGER.info("Installed %s (%s)", record.station_name, identity)
        if self._on_confirm is not None:
            self._on_confirm(record)
        return record

    def confirm_many(self, identities: Iterable[str]) -> list[DeviceRecord]:
        """Install several candidates, skipping the ones no longer offered."""
        installed: list[DeviceRecord] = []
        for identity in identities:
            try:
                installed.append(self.confirm(identity))
            except DeviceNotFoundError as exc:  # noqa: PERF203
                _LOGGER.warning("Not installing %s: %s", identity, exc)
        return installed
