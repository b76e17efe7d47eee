"""JSON file storage for the installed-device list."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import TYPE_CHECKING

import orjson

if TYPE_CHECKING:
    from pathlib import Path

    from .models import PersistedDevice

_LOGGER = logging.getLogger(__name__)


async def load_devices(path: Path) -> list[PersistedDevice]:
    """
    Load the installed devices saved at path.

    Returns:
        The saved devices, or an empty list if the file does not exist.

    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _load_devices_sync, path)


def _load_devices_sync(path: Path) -> list[PersistedDevice]:
    """Synchronous device file read."""
    try:
        data = orjson.loads(path.read_bytes())
    except FileNotFoundError:
        return []
    if not isinstance(data, list):
        _LOGGER.warning("Ignoring malformed device file %s", path)
        return []
    return [d for d in data if isinstance(d, dict) and "id" in d]


async def save_devices(path: Path, devices: list[PersistedDevice]) -> None:
    """Save the installed devices to path."""
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, _save_devices_sync, path, devices)
    _LOGGER.info("Saved %d device(s) to %s", len(devices), path)


def _save_devices_sync(path: Path, devices: list[PersistedDevice]) -> None:
    """Synchronous device file write (atomic via rename)."""
    tmp_path = path.with_suffix(".tmp")
    fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    try:
        os.write(fd, orjson.dumps(devices, option=orjson.OPT_INDENT_2))
    finally:
        os.close(fd)
    tmp_path.replace(path)
