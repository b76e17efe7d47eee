"""Discovery of thermostats that are not yet installed."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .const import DISCOVERY_TIMEOUT
from .exceptions import NeosyncError
from .identity import generate_identity
from .models import DeviceRecord

if TYPE_CHECKING:
    from .client import NeoHubCapability
    from .models import DiscoveryResult
    from .registry import DeviceRegistry

_LOGGER = logging.getLogger(__name__)


class DiscoveryService:
    """
    Fill the registry's candidates from a hub discovery.

    Each run starts from an empty candidate list, so devices seen by an
    earlier attempt never linger as ghost entries in the pairing list.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        client: NeoHubCapability,
        *,
        timeout: float = DISCOVERY_TIMEOUT,
    ) -> None:
        self._registry = registry
        self._client = client
        self._timeout = timeout

    async def run(self) -> list[DeviceRecord]:
        """
        Discover stations and return the candidates added by this pass.

        A hub that does not answer within the timeout, or cannot be reached,
        yields an empty list rather than an error.
        """
        self._registry.clear_candidates()
        try:
            result = await asyncio.wait_for(self._client.discover(), self._timeout)
        except TimeoutError:
            _LOGGER.warning("No discovery reply within %ss", self._timeout)
            return []
        except NeosyncError as exc:
            _LOGGER.warning("Discovery failed: %s", exc)
            return []
        return self._collect(result)

    def _collect(self, result: DiscoveryResult) -> list[DeviceRecord]:
        """Insert the new, not yet installed stations as candidates."""
        added: list[DeviceRecord] = []
        for sample in result.samples:
            identity = generate_identity(sample.station_name, sample.device_type)
            # Readings stay unset until the first poll after pairing.
            record = DeviceRecord(
                identity=identity,
                station_name=sample.station_name,
                device_type=sample.device_type,
            )
            if self._registry.insert_candidate(record):
                added.append(record)
        _LOGGER.info(
            "Discovered %d station(s) on %s:%s, %d new",
            len(result.samples),
            result.host,
            result.port,
            len(added),
        )
        return added
