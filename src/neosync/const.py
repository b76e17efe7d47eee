"""Constants and enums for the neosync thermostat engine."""

from __future__ import annotations

from enum import Enum


class Resolution(float, Enum):
    """Setpoint resolution supported by a thermostat class."""

    TENTH = 0.1
    HALF = 0.5
    WHOLE = 1.0


class Partition(Enum):
    """Registry partition holding a device record."""

    INSTALLED = "installed"
    CANDIDATES = "candidates"


TARGET_TEMPERATURE = "target_temperature"
MEASURE_TEMPERATURE = "measure_temperature"

DEFAULT_PORT = 4242
DISCOVERY_PORT = 19790
DISCOVERY_MESSAGE = b"hubseek"
BROADCAST_ADDRESS = "255.255.255.255"

DISCOVERY_TIMEOUT = 15  # seconds
POLL_INTERVAL = 15  # seconds
RESPONSE_TIMEOUT = 10

MIN_TEMPERATURE = 5.0
MAX_TEMPERATURE = 35.0
MEASURED_PRECISION = 1  # decimal places used when diffing measured readings
