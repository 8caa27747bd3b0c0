# ==============================================
# CLI — Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Command-line access to the client. Records are printed to
#   stdout one JSON object per line; progress goes to stderr.
#
# COMMANDS:
# ---------
# 1. Stream objects:
#    python -m prtg_stream.cli objects sensors
#    python -m prtg_stream.cli objects devices --filter status=5 --sort name
#    python -m prtg_stream.cli objects sensors --last 10 --no-progress
#
# 2. Tail the log:
#    python -m prtg_stream.cli logs
#    python -m prtg_stream.cli logs --since-minutes 30 --filter status=607
#
#    Press Ctrl+C to stop tailing.
#
# EXIT CODES:
# -----------
#   0 → success / stopped by the user
#   1 → request failed (transport or protocol error)
#
# ==============================================

import argparse
import json
import logging
import sys
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from prtg_stream.client import PrtgClient
from prtg_stream.config import get_config
from prtg_stream.errors import CancellationError, PrtgStreamError
from prtg_stream.pipeline.stages import TakeLast
from prtg_stream.progress.renderer import ConsoleRenderer
from prtg_stream.request.query import Content
from prtg_stream.streaming.cancellation import CancellationToken

logger = logging.getLogger(__name__)


def _parse_filters(values: Optional[List[str]]) -> Dict[str, object]:
    """Turn ["status=5", "status=13", "name=ping"] into {"status": ["5", "13"], "name": "ping"}."""
    filters: Dict[str, object] = {}
    for item in values or []:
        if "=" not in item:
            raise ValueError(f"Filter '{item}' must look like field=value")
        key, value = item.split("=", 1)
        if key in filters:
            existing = filters[key]
            filters[key] = (existing if isinstance(existing, list) else [existing]) + [value]
        else:
            filters[key] = value
    return filters


def _print_retry(attempt: int, remaining: int, error: Exception) -> None:
    print(f"⚠ {error}. Retrying ({remaining} attempts remaining)...", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prtg-stream",
        description="Stream objects and logs from a PRTG server"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    objects = subparsers.add_parser("objects", help="Stream objects of one type")
    objects.add_argument("content", choices=[c.value for c in Content if c != Content.MESSAGES])
    objects.add_argument("--filter", action="append", dest="filters", metavar="FIELD=VALUE")
    objects.add_argument("--sort", dest="sort_by")
    objects.add_argument("--page-size", type=int)
    objects.add_argument("--last", type=int, help="Only output the last N objects")
    objects.add_argument("--no-progress", action="store_true")

    logs = subparsers.add_parser("logs", help="Tail the log")
    logs.add_argument("--since-minutes", type=float, default=0.0)
    logs.add_argument("--filter", action="append", dest="filters", metavar="FIELD=VALUE")

    return parser


def run_objects(client: PrtgClient, args, filters, progress_enabled: bool) -> int:
    content = Content(args.content)
    tail = [TakeLast(args.last)] if args.last is not None else []

    pipeline = client.pipeline(
        content,
        *tail,
        filters=filters,
        sort_by=args.sort_by,
        page_size=args.page_size,
        renderer=ConsoleRenderer(),
        progress=progress_enabled,
    )

    count = 0
    for record in pipeline:
        print(json.dumps(record))
        count += 1

    logger.info("Printed %d %s", count, content.value)
    return 0


def run_logs(client: PrtgClient, args, filters) -> int:
    since = datetime.now() - timedelta(minutes=args.since_minutes)
    token = CancellationToken()
    stream = client.stream_logs(since=since, filters=filters, token=token)

    print(f"Tailing log from {since:%Y-%m-%d %H:%M:%S} (Ctrl+C to stop)...", file=sys.stderr)
    try:
        for record in stream:
            print(json.dumps(record))
    except KeyboardInterrupt:
        token.cancel()
        print("\n✓ Stopped", file=sys.stderr)
    except CancellationError:
        print("\n✓ Cancelled", file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        filters = _parse_filters(args.filters) or None
    except ValueError as e:
        parser.error(str(e))

    config = get_config()
    progress_enabled = config.progress.enabled and not getattr(args, "no_progress", False)

    with PrtgClient(config, on_retry=_print_retry) as client:
        try:
            if args.command == "objects":
                return run_objects(client, args, filters, progress_enabled)
            return run_logs(client, args, filters)
        except PrtgStreamError as e:
            print(f"✗ Error: {e}", file=sys.stderr)
            return 1


if __name__ == "__main__":
    sys.exit(main())
