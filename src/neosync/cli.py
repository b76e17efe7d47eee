"""Command-line interface for neosync thermostat control."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .client import NeoHubClient
from .const import DEFAULT_PORT, DISCOVERY_TIMEOUT, POLL_INTERVAL, Resolution
from .driver import NeoDriver
from .exceptions import DeviceNotFoundError, NeosyncError
from .storage import load_devices, save_devices

_LOGGER = logging.getLogger(__name__)

DEFAULT_STORE = Path("neosync_devices.json")

_RESOLUTIONS: dict[str, Resolution] = {
    "0.1": Resolution.TENTH,
    "0.5": Resolution.HALF,
    "1": Resolution.WHOLE,
}


def _fmt(value: float | None) -> str:
    return "--" if value is None else f"{value:.1f}°C"


def _print_devices(driver: NeoDriver) -> None:
    """Display the installed thermostats and their cached readings."""
    print("\n--- Installed Thermostats ---")
    records = driver.registry.installed_records()
    if not records:
        print("  (none)")
    for idx, record in enumerate(records, 1):
        print(f"  [{idx}] {record.station_name} ({record.identity})")
        print(f"    Target: {_fmt(record.target_temperature)}")
        print(f"    Measured: {_fmt(record.measured_temperature)}")
    print("-----------------------------\n")


def _print_help() -> None:
    """Display available commands."""
    print("Commands:")
    print("  status                Show installed thermostats")
    print("  get <device>          Poll and show target/measured temperature")
    print("  set <device> <temp>   Set target temperature")
    print("  remove <device>       Forget an installed thermostat")
    print("  refresh               Run a poll cycle now")
    print("  quit                  Stop and exit")
    print("<device> is the number shown by 'status' or a device id.")


def _resolve(driver: NeoDriver, ref: str) -> str | None:
    """Map a status index or identity to an installed identity."""
    records = driver.registry.installed_records()
    if ref.isdigit() and 1 <= int(ref) <= len(records):
        return records[int(ref) - 1].identity
    for record in records:
        if record.identity == ref:
            return ref
    return None


async def _cmd_get(driver: NeoDriver, identity: str) -> None:
    """Handle the get command."""
    try:
        target = await driver.get_target_temperature(identity)
        measured = await driver.get_measured_temperature(identity)
    except DeviceNotFoundError as exc:
        print(f"Not found: {exc}")
        return
    print(f"Target: {_fmt(target)}  Measured: {_fmt(measured)}")


async def _cmd_set(driver: NeoDriver, identity: str, raw: str) -> None:
    """Handle the set command."""
    try:
        value: float | None = float(raw)
    except ValueError:
        value = None
    result = await driver.set_target_temperature(identity, value)
    if result.ok:
        print(f"Target temperature set to {_fmt(result.value)}")
    else:
        print(f"Set failed ({result.value}): {result.error}")


async def _handle_command(
    driver: NeoDriver, parts: list[str], store: Path
) -> bool:
    """Handle a single interactive command.

    Returns False when the user asked to quit.
    """
    parts = [parts[0].lower(), *parts[1:]]
    if parts[0] in ("quit", "q"):
        return False

    if parts[0] == "status":
        _print_devices(driver)

    elif parts[0] == "refresh":
        ok = await driver.poller.refresh()
        print("Poll complete" if ok else "Hub unreachable, poll skipped")

    elif parts[0] in ("get", "set", "remove") and len(parts) >= 2:
        identity = _resolve(driver, parts[1])
        if identity is None:
            print(f"Device {parts[1]} not found. Type 'status' to list devices.")
        elif parts[0] == "get":
            await _cmd_get(driver, identity)
        elif parts[0] == "set" and len(parts) >= 3:
            await _cmd_set(driver, identity, parts[2])
        elif parts[0] == "remove":
            driver.deleted(identity)
            await save_devices(store, driver.installed_devices())
            print(f"Removed {identity}")
        else:
            print("Usage: set <device> <temp>")

    elif parts[0] in ("help", "?"):
        _print_help()

    else:
        print("Unknown command. Type 'help' for available commands.")

    return True


def _make_driver(args: argparse.Namespace) -> NeoDriver:
    client = NeoHubClient(args.host, args.port)
    return NeoDriver(
        client,
        resolution=_RESOLUTIONS[args.resolution],
        poll_interval=args.interval,
        discovery_timeout=args.timeout,
    )


def _parse_selection(line: str, count: int) -> list[int]:
    """Turn '1 3' or 'all' into zero-based candidate indexes."""
    if line.strip().lower() == "all":
        return list(range(count))
    indexes: list[int] = []
    for token in line.replace(",", " ").split():
        if token.isdigit() and 1 <= int(token) <= count:
            indexes.append(int(token) - 1)
    return indexes


async def _do_pair(args: argparse.Namespace) -> None:
    """Discover new thermostats and install the ones the user picks."""
    print("\n=== PAIRING MODE ===")
    print("Searching for thermostats...\n")

    persisted = await load_devices(args.store)
    async with _make_driver(args) as driver:
        await driver.init(persisted, discover=False)
        try:
            candidates = await driver.list_devices()
        except NeosyncError as exc:
            print(f"Discovery failed: {exc}")
            return
        if not candidates:
            print("No new thermostats found.")
            print("\nMake sure:")
            print("  1. The NeoHub is powered and connected")
            print("  2. You are on the same network as the NeoHub")
            return

        for idx, candidate in enumerate(candidates, 1):
            print(f"  [{idx}] {candidate.display_name}")
        print("\nEnter numbers to add (e.g. '1 3'), 'all', or nothing to cancel:")
        loop = asyncio.get_running_loop()
        line = await loop.run_in_executor(None, sys.stdin.readline)

        added = 0
        for idx in _parse_selection(line, len(candidates)):
            try:
                driver.add_device(candidates[idx].identity)
                added += 1
            except DeviceNotFoundError as exc:
                print(f"Could not add {candidates[idx].display_name}: {exc}")
        if not added:
            print("Nothing added.")
            return
        await save_devices(args.store, driver.installed_devices())
        print(f"Pairing complete! {added} thermostat(s) added.\n")


async def _do_monitor(args: argparse.Namespace) -> None:
    """Run monitoring mode with interactive command loop."""
    persisted = await load_devices(args.store)
    if not persisted:
        print("No devices installed. Run with --pair first.")
        return

    print("\n=== MONITORING MODE ===")
    print(f"Using {len(persisted)} saved device(s) from {args.store}")

    async with _make_driver(args) as driver:

        def on_change(identity: str, field_name: str, value: float | None) -> None:
            record = driver.registry.lookup(identity)
            name = record.station_name if record else identity
            print(f"[<] {name}: {field_name} = {value}")

        driver.add_realtime_callback(on_change)
        await driver.init(persisted)

        print("\nWatching thermostats... (Ctrl+C to quit)")
        _print_help()
        print()

        loop = asyncio.get_running_loop()
        try:
            while True:
                line = await loop.run_in_executor(None, sys.stdin.readline)
                if not line:
                    break
                cmd = line.strip()
                if not cmd:
                    continue
                if not await _handle_command(driver, cmd.split(), args.store):
                    break
        except KeyboardInterrupt:
            pass

    print("\nStopped.")


def main() -> None:
    """Entry point for the neosync CLI."""
    parser = argparse.ArgumentParser(
        description="Heatmiser Neo Thermostat Sync CLI"
    )
    parser.add_argument(
        "--host", help="NeoHub IP address (default: discover by broadcast)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=DEFAULT_STORE,
        help=f"Installed device file (default: {DEFAULT_STORE})",
    )
    parser.add_argument(
        "--resolution",
        choices=sorted(_RESOLUTIONS),
        default="0.1",
        help="Setpoint resolution in degrees (default: 0.1)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=POLL_INTERVAL,
        help=f"Poll interval in seconds (default: {POLL_INTERVAL})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DISCOVERY_TIMEOUT,
        help=f"Discovery timeout in seconds (default: {DISCOVERY_TIMEOUT})",
    )
    parser.add_argument(
        "--pair", action="store_true", help="Enter pairing mode"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    args = parser.parse_args()

    level = logging.DEBUG if args.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.pair:
        asyncio.run(_do_pair(args))
    else:
        asyncio.run(_do_monitor(args))
