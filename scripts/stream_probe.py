#!/usr/bin/env python3
"""Passive notification stream probe for a UniFi Access hub.

This script reuses the pyunifiaccess client to:
1) discover the hub's devices,
2) open the device notification websocket,
3) print every state transition (and optionally every raw envelope).

Use this to check how a hub reports door, lock and reader activity.
Reads ``UNIFI_ACCESS_BASE_URL`` and ``UNIFI_ACCESS_API_TOKEN`` from the environment.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyunifiaccess import (  # noqa: E402
    DeviceState,
    StateChange,
    UnifiAccessClient,
    UnifiAccessConfig,
    UnifiAccessError,
)
from pyunifiaccess._redact import redact_for_log  # noqa: E402

_LOG = logging.getLogger("stream_probe")


@dataclass
class ProbeStats:
    started_at: float
    total_changes: int = 0
    total_refreshes: int = 0
    last_change_at: float | None = None


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Passive probe for the UniFi Access notification stream.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print every (redacted) stream envelope.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_devices(devices: list[DeviceState]) -> None:
    print(f"[probe] {len(devices)} device(s)")
    for device in devices:
        print(f"[probe]   {device.id:<24} {device.kind.value:<16} {device.name}")


def _print_summary(stats: ProbeStats) -> None:
    runtime = time.time() - stats.started_at
    print("[probe] Summary")
    print(f"[probe]   runtime_s       : {runtime:.1f}")
    print(f"[probe]   state_changes   : {stats.total_changes}")
    print(f"[probe]   refreshes       : {stats.total_refreshes}")
    if stats.last_change_at is not None:
        last_change = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(stats.last_change_at))
        print(f"[probe]   last_change     : {last_change}")


async def _run(args: argparse.Namespace, config: UnifiAccessConfig, stats: ProbeStats) -> None:
    def _on_change(change: StateChange, state: DeviceState) -> None:
        stats.total_changes += 1
        stats.last_change_at = time.time()
        print(
            f"[probe] {state.name}: {change.field.value} {change.previous} -> {change.value} ({change.source.value})",
            flush=True,
        )

    def _on_refresh(state: DeviceState) -> None:
        stats.total_refreshes += 1

    def _on_envelope(payload: Any) -> None:
        print(json.dumps(redact_for_log(payload), indent=2, ensure_ascii=False), flush=True)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    async with UnifiAccessClient(
        config,
        on_state_change=_on_change,
        on_device_refresh=_on_refresh,
        on_envelope=_on_envelope if args.raw else None,
    ) as client:
        _print_devices(await client.discover_devices())

        client.start_stream()
        print("[probe] Listening; Ctrl+C to stop")
        timeout = args.duration if args.duration > 0 else None
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=timeout)


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = UnifiAccessConfig.from_env(stream_enabled=False)
    except UnifiAccessError as exc:
        print(f"[probe] {exc}", file=sys.stderr)
        return 2

    stats = ProbeStats(started_at=time.time())
    try:
        asyncio.run(_run(args, config, stats))
    except UnifiAccessError as exc:  # pragma: no cover - network/system interaction
        print(f"[probe] Failed: {exc}", file=sys.stderr)
        return 2
    finally:
        _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
