"""In-memory store of installed and candidate thermostats."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .const import Partition

if TYPE_CHECKING:
    from .models import DeviceRecord

_LOGGER = logging.getLogger(__name__)


class DeviceRegistry:
    """
    Device records keyed by identity, split into two partitions.

    installed holds user-confirmed devices restored by the host.
    candidates holds devices found by the latest discovery pass that are
    waiting for pairing confirmation. An identity is never present in both.
    """

    def __init__(self) -> None:
        self._partitions: dict[Partition, dict[str, DeviceRecord]] = {
            Partition.INSTALLED: {},
            Partition.CANDIDATES: {},
        }

    @property
    def has_installed(self) -> bool:
        """Return True if at least one device is installed."""
        return bool(self._partitions[Partition.INSTALLED])

    def lookup(
        self, identity: str, partition: Partition = Partition.INSTALLED
    ) -> DeviceRecord | None:
        """Return the record for identity in partition, or None."""
        return self._partitions[partition].get(identity)

    def installed_records(self) -> list[DeviceRecord]:
        """Return a snapshot of the installed records."""
        return list(self._partitions[Partition.INSTALLED].values())

    def candidate_records(self) -> list[DeviceRecord]:
        """Return a snapshot of the candidate records."""
        return list(self._partitions[Partition.CANDIDATES].values())

    def insert_candidate(self, record: DeviceRecord) -> bool:
        """
        Add a discovered device to the candidates.

        Returns False without changing anything if the identity is already
        installed or already a candidate.
        """
        if record.identity in self._partitions[Partition.INSTALLED]:
            _LOGGER.debug("Skipping installed device %s", record.station_name)
            return False
        candidates = self._partitions[Partition.CANDIDATES]
        if record.identity in candidates:
            _LOGGER.debug("Skipping duplicate candidate %s", record.station_name)
            return False
        candidates[record.identity] = record
        return True

    def insert_installed(self, record: DeviceRecord) -> bool:
        """Add a device to the installed set. Returns False on duplicates."""
        installed = self._partitions[Partition.INSTALLED]
        if record.identity in installed:
            _LOGGER.debug("Device %s already installed", record.station_name)
            return False
        installed[record.identity] = record
        self._partitions[Partition.CANDIDATES].pop(record.identity, None)
        return True

    def promote(self, identity: str) -> DeviceRecord | None:
        """Move a candidate to the installed set and return it."""
        record = self._partitions[Partition.CANDIDATES].pop(identity, None)
        if record is None:
            return None
        self._partitions[Partition.INSTALLED][identity] = record
        return record

    def remove_installed(self, identity: str) -> DeviceRecord | None:
        """Remove an installed device. Unknown identities are ignored."""
        return self._partitions[Partition.INSTALLED].pop(identity, None)

    def clear_candidates(self) -> None:
        """Drop every candidate."""
        self._partitions[Partition.CANDIDATES].clear()
