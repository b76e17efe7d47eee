"""Discovery, polling, and control of Heatmiser Neo thermostats."""

__version__ = "1.0.0"

from .client import NeoHubCapability, NeoHubClient
from .const import DEFAULT_PORT, POLL_INTERVAL, Partition, Resolution
from .driver import NeoDriver
from .exceptions import (
    CommandError,
    DeviceNotFoundError,
    InvalidValueError,
    NeosyncError,
    NetworkUnavailableError,
    PairingError,
)
from .identity import generate_identity
from .models import Candidate, CommandResult, DeviceRecord, PollSample
from .storage import load_devices, save_devices

__all__ = [
    "DEFAULT_PORT",
    "POLL_INTERVAL",
    "Candidate",
    "CommandError",
    "CommandResult",
    "DeviceNotFoundError",
    "DeviceRecord",
    "InvalidValueError",
    "NeoDriver",
    "NeoHubCapability",
    "NeoHubClient",
    "NeosyncError",
    "NetworkUnavailableError",
    "PairingError",
    "Partition",
    "PollSample",
    "Resolution",
    "generate_identity",
    "load_devices",
    "save_devices",
]
