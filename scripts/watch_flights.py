#!/usr/bin/env python3
"""Headless flight console.

Connects to the push channel, reconciles against the flight API and logs
every store change, connection transition and activity entry until
interrupted.

Configuration comes from ``JETWATCH_*`` environment variables; command-line
flags override them.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from jetwatch import FlightConsole, JetwatchConfig, JetwatchError, LoggingRenderer  # noqa: E402


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--base-url", help="Flight API base URL (default: JETWATCH_BASE_URL or localhost:8080)")
    parser.add_argument(
        "--mode",
        choices=("snapshot", "per_key"),
        help="Reconciliation mode (default: JETWATCH_RECONCILE_MODE or snapshot)",
    )
    parser.add_argument("--poll-interval", type=float, help="Reconciliation period in seconds")
    parser.add_argument("--select", metavar="FLIGHT", help="Select FLIGHT and log its details")
    parser.add_argument("--history", action="store_true", help="Load audit trails of the selected flight")
    parser.add_argument("--export", type=Path, metavar="DIR", help="Write the loaded execution history to DIR")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


class _ExportingRenderer(LoggingRenderer):
    def __init__(self, export_dir: Path | None) -> None:
        super().__init__(logging.getLogger("jetwatch.console"))
        self._export_dir = export_dir

    def offer_download(self, filename: str, content: str) -> None:
        super().offer_download(filename, content)
        if self._export_dir is not None:
            self._export_dir.mkdir(parents=True, exist_ok=True)
            (self._export_dir / filename).write_text(content, encoding="utf-8")


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.mode:
        overrides["reconcile_mode"] = args.mode
    if args.poll_interval is not None:
        overrides["poll_interval"] = args.poll_interval

    try:
        config = JetwatchConfig.from_env(**overrides)
    except JetwatchError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    renderer = _ExportingRenderer(args.export)
    async with FlightConsole(config, renderer=renderer) as console:
        await console.start()
        if args.select:
            await console.select(args.select)
            if args.history:
                await console.load_history(args.select)
                if args.export is not None:
                    console.export_history()
        with contextlib.suppress(asyncio.CancelledError):
            await asyncio.Event().wait()
    return 0


def main() -> int:
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
