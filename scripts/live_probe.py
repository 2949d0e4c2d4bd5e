#!/usr/bin/env python3
"""Live probe for a GraphQL sync peer.

Connects with pylivesync, subscribes to every topic and prints each slice
change as it arrives. Optionally sends one message once connected.

Configuration comes from the ``LIVESYNC_*`` environment variables; the
endpoint can be overridden on the command line.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pylivesync import SyncClient, SyncConfig, SyncError, Topic  # noqa: E402
from pylivesync._transport import TransportState  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print live slice changes from a graphql-transport-ws peer.",
    )
    parser.add_argument(
        "--endpoint",
        default=None,
        help="WebSocket endpoint (defaults to LIVESYNC_ENDPOINT).",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--send",
        metavar="TEXT",
        default=None,
        help="Send one message after connecting.",
    )
    parser.add_argument(
        "--trace-frames",
        action="store_true",
        help="Log every protocol frame (redacted).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_change(client: SyncClient, topic: Topic) -> None:
    stamp = time.strftime("%H:%M:%S")
    if topic == Topic.MESSAGE_ADDED:
        latest = client.current_messages()[-1]
        print(f"[probe] {stamp} message  #{len(client.current_messages())} {latest.author}: {latest.text}")
    elif topic == Topic.SYSTEM_STATUS_CHANGED:
        status = client.current_status()
        if status is not None:
            print(f"[probe] {stamp} status   online={status.online} load={status.load}")
    elif topic == Topic.SETTINGS_UPDATED:
        settings = client.current_settings()
        if settings is not None:
            print(f"[probe] {stamp} settings theme={settings.theme} lang={settings.lang}")


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.endpoint:
        overrides["endpoint"] = args.endpoint
    if args.trace_frames:
        overrides["frame_trace_enabled"] = True
    config = SyncConfig.from_env(**overrides)

    lost = asyncio.Event()

    def _on_state(state: TransportState, error: BaseException | None) -> None:
        print(f"[probe] connection {state}" + (f" ({error})" if error else ""))
        if state in (TransportState.ERRORED, TransportState.CLOSED):
            lost.set()

    print(f"[probe] connecting to {config.endpoint}")
    async with SyncClient(config, on_connection_state=_on_state) as client:
        client.add_listener(lambda topic: _print_change(client, topic))

        if args.send:
            message = await client.send_command(args.send)
            print(f"[probe] sent message id={message.id}")

        try:
            await asyncio.wait_for(lost.wait(), args.duration or None)
        except TimeoutError:
            pass
        dropped = lost.is_set()

        print("[probe] Summary")
        print(f"[probe]   messages : {len(client.current_messages())}")
        print(f"[probe]   status   : {client.current_status()}")
        print(f"[probe]   settings : {client.current_settings()}")
    return 1 if dropped else 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 0
    except SyncError as exc:  # pragma: no cover - network/system interaction
        print(f"[probe] Failed: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(_main())
