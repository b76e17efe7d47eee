"""Async client for a Heatmiser NeoHub on the local network."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Protocol

import orjson

from .const import (
    BROADCAST_ADDRESS,
    DEFAULT_PORT,
    DISCOVERY_MESSAGE,
    DISCOVERY_PORT,
    RESPONSE_TIMEOUT,
)
from .exceptions import CommandError, NetworkUnavailableError
from .models import DiscoveryResult, HubSeekReply, InfoResponse, PollSample

if TYPE_CHECKING:
    from collections.abc import Sequence

_LOGGER = logging.getLogger(__name__)

_READ_LIMIT = 2**20


def _encode_message(msg: dict[str, Any]) -> bytes:
    r"""
    Encode a command for sending.

    Wire format: compact JSON + \x00. The hub uses the null byte to find
    the end of a command and terminates its replies the same way.
    """
    return orjson.dumps(msg) + b"\x00"


def _decode_reply(data: bytes) -> dict[str, Any]:
    """
    Parse a null-terminated hub reply.

    The JSON object is taken from the first '{' to the last '}' so stray
    whitespace or the terminator around it is ignored.
    """
    text = data.rstrip(b"\x00").decode("utf-8", errors="replace")
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise NetworkUnavailableError(f"Malformed reply from hub: {text[:200]!r}")
    try:
        msg = orjson.loads(text[start : end + 1])
    except orjson.JSONDecodeError as exc:
        raise NetworkUnavailableError(
            f"Malformed reply from hub: {text[start : end + 1][:200]!r}"
        ) from exc
    if not isinstance(msg, dict):
        raise NetworkUnavailableError(f"Unexpected reply from hub: {msg!r}")
    return msg


def _parse_samples(reply: dict[str, Any]) -> list[PollSample]:
    """Convert an INFO reply into poll samples, skipping unnamed stations."""
    info: InfoResponse = reply  # type: ignore[assignment]
    samples: list[PollSample] = []
    for station in info.get("devices") or []:
        if not isinstance(station, dict) or not station.get("device"):
            _LOGGER.debug("Ignoring station entry without a name: %r", station)
            continue
        samples.append(PollSample.from_station(station))
    return samples


class NeoHubCapability(Protocol):
    """The thermostat-network operations the engine depends on."""

    async def discover(self) -> DiscoveryResult:
        """Locate the hub and list its stations."""

    async def fetch_status(self) -> list[PollSample]:
        """Return a reading for every station on the hub."""

    async def set_temperature(
        self, value: float, station_names: str | Sequence[str]
    ) -> None:
        """Set the target temperature of one or more stations."""


class HubSeekProtocol(asyncio.DatagramProtocol):
    """
    Datagram handler for hubseek broadcasts.

    Resolves the owning future with the first hub address received.
    Later replies (hubs answer more than once) are ignored.
    """

    def __init__(self, found: asyncio.Future[str]) -> None:
        self._found = found

    def datagram_received(self, data: bytes, addr: tuple[str | Any, int]) -> None:
        """Called for every UDP reply."""
        _LOGGER.debug("[<] UDP %s: %r", addr, data)
        if self._found.done():
            return
        try:
            reply: HubSeekReply = orjson.loads(data)
            host = reply["ip"]
        except (orjson.JSONDecodeError, KeyError, TypeError):
            _LOGGER.warning("Ignoring unexpected hubseek reply from %s", addr[0])
            return
        self._found.set_result(host)

    def error_received(self, exc: Exception) -> None:
        """Called when a send or receive operation fails."""
        _LOGGER.warning("Hubseek socket error: %s", exc)


class NeoHubClient:
    """
    Request/response client for a NeoHub.

    Each request opens a short TCP connection, writes one command and reads
    one reply. Requests are serialized so the hub never sees two at once.
    If no host is given, discover() locates the hub by UDP broadcast and
    remembers its address for later requests. A request made before any
    hub has answered broadcasts again with a bounded wait.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int = DEFAULT_PORT,
        *,
        discovery_port: int = DISCOVERY_PORT,
        response_timeout: float = RESPONSE_TIMEOUT,
    ) -> None:
        self._host = host
        self._port = port
        self._discovery_port = discovery_port
        self._response_timeout = response_timeout
        self._lock = asyncio.Lock()

    @property
    def host(self) -> str | None:
        """Return the hub address, if known."""
        return self._host

    @property
    def port(self) -> int:
        """Return the hub TCP port."""
        return self._port

    # --- Capability ---

    async def discover(self) -> DiscoveryResult:
        """
        Locate the hub and list its stations.

        Waits for a hubseek reply for as long as the caller allows; callers
        are expected to bound the wait.

        Raises:
            NetworkUnavailableError: If the hub cannot be reached.

        """
        if self._host is None:
            self._host = await self._seek_hub()
            _LOGGER.info("Found NeoHub at %s:%s", self._host, self._port)
        samples = await self.fetch_status()
        return DiscoveryResult(host=self._host, port=self._port, samples=samples)

    async def fetch_status(self) -> list[PollSample]:
        """
        Return a reading for every station on the hub.

        Raises:
            NetworkUnavailableError: If the hub cannot be reached.

        """
        reply = await self.request({"INFO": 0})
        return _parse_samples(reply)

    async def set_temperature(
        self, value: float, station_names: str | Sequence[str]
    ) -> None:
        """
        Set the target temperature of one or more stations.

        Raises:
            CommandError: If the hub rejects the command.
            NetworkUnavailableError: If the hub cannot be reached.

        """
        names = station_names if isinstance(station_names, str) else list(station_names)
        reply = await self.request({"SET_TEMP": [value, names]})
        if "error" in reply:
            raise CommandError(f"SET_TEMP rejected: {reply['error']}")
        _LOGGER.debug("SET_TEMP %s on %s: %s", value, names, reply.get("result"))

    # --- Transport ---

    async def request(self, msg: dict[str, Any]) -> dict[str, Any]:
        """
        Send one command to the hub and return its parsed reply.

        Raises:
            NetworkUnavailableError: If no hub answers hubseek, the
                connection fails, or no complete reply arrives in time.

        """
        if self._host is None:
            await self._locate_hub()
        async with self._lock:
            try:
                reader, writer = await asyncio.wait_for(
                    asyncio.open_connection(self._host, self._port, limit=_READ_LIMIT),
                    timeout=self._response_timeout,
                )
            except TimeoutError as exc:
                raise NetworkUnavailableError(
                    f"Connection to {self._host}:{self._port} timed out"
                ) from exc
            except OSError as exc:
                raise NetworkUnavailableError(f"TCP connect failed: {exc!r}") from exc
            try:
                encoded = _encode_message(msg)
                _LOGGER.debug("[>] TX %d bytes: %r", len(encoded), encoded)
                writer.write(encoded)
                await writer.drain()
                data = await asyncio.wait_for(
                    reader.readuntil(b"\x00"), timeout=self._response_timeout
                )
            except TimeoutError as exc:
                raise NetworkUnavailableError(
                    f"No reply from hub in {self._response_timeout}s"
                ) from exc
            except asyncio.IncompleteReadError as exc:
                raise NetworkUnavailableError("Hub closed the connection") from exc
            except (asyncio.LimitOverrunError, OSError) as exc:
                raise NetworkUnavailableError(f"Hub request failed: {exc!r}") from exc
            finally:
                writer.close()
            _LOGGER.debug("[<] RX %d bytes", len(data))
        return _decode_reply(data)

    async def _locate_hub(self) -> None:
        """Seek the hub with a bounded wait when an earlier discovery failed."""
        try:
            self._host = await asyncio.wait_for(
                self._seek_hub(), timeout=self._response_timeout
            )
        except TimeoutError as exc:
            raise NetworkUnavailableError(
                f"No NeoHub answered hubseek in {self._response_timeout}s"
            ) from exc
        _LOGGER.info("Found NeoHub at %s:%s", self._host, self._port)

    async def _seek_hub(self) -> str:
        """Broadcast hubseek and return the address of the first hub to answer."""
        loop = asyncio.get_running_loop()
        found: asyncio.Future[str] = loop.create_future()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: HubSeekProtocol(found),
                local_addr=("0.0.0.0", 0),  # noqa: S104
                allow_broadcast=True,
            )
        except OSError as exc:
            raise NetworkUnavailableError(f"UDP discovery failed: {exc!r}") from exc
        try:
            _LOGGER.debug("[>] hubseek to port %s", self._discovery_port)
            transport.sendto(
                DISCOVERY_MESSAGE, (BROADCAST_ADDRESS, self._discovery_port)
            )
            return await found
        except OSError as exc:
            raise NetworkUnavailableError(f"Hubseek broadcast failed: {exc!r}") from exc
        finally:
            transport.close()
