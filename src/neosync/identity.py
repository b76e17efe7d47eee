"""Stable device identities derived from station attributes."""

from __future__ import annotations

import base64


def generate_identity(station_name: str, device_type: str | int) -> str:
    """
    Return the identity token for a thermostat.

    The token is the base64 encoding of the station name followed by the
    device type, so the same physical device maps to the same identity
    across restarts and rediscovery.
    """
    raw = f"{station_name}{device_type}".encode()
    return base64.b64encode(raw).decode("ascii")
