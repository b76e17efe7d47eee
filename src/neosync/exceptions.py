"""Exception classes for neosync."""


class NeosyncError(Exception):
    """Base exception for neosync."""


class InvalidValueError(NeosyncError):
    """A command value was missing or unusable."""


class DeviceNotFoundError(NeosyncError):
    """No device with the requested identity is known."""


class NetworkUnavailableError(NeosyncError):
    """The NeoHub could not be reached."""


class CommandError(NeosyncError):
    """A command sent to the NeoHub was rejected."""


class PairingError(NeosyncError):
    """The pairing workflow was used out of order."""
