from __future__ import annotations

import argparse
import base64
import binascii
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from slab_book.core.book.orderbook import decode_orderbook
from slab_book.core.domain.errors import SlabBookError
from slab_book.core.market.market_config import MarketConfig
from slab_book.core.queue.fills import parse_fills
from slab_book.core.queue.queues import decode_event_queue

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return json.loads(path.read_text(encoding="utf-8"))


def _load_account(path: Path, encoded: bool) -> bytes:
    """
    Read raw account data. With --base64 the file holds the base64 text an
    RPC node returns for the account.
    """
    if not path.exists():
        raise FileNotFoundError(path)
    if not encoded:
        return path.read_bytes()
    try:
        return base64.b64decode(path.read_text(encoding="ascii").strip(), validate=True)
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise SlabBookError(f"{path}: not valid base64 account data") from exc


def _dump(rows: list[Any]) -> str:
    return json.dumps([row.model_dump(mode="json", exclude_none=True) for row in rows], indent=2)


def _run_book(args: argparse.Namespace, market: MarketConfig) -> str:
    book = decode_orderbook(_load_account(args.account, args.base64), market)
    if args.orders:
        return _dump(list(book.by_priority()))
    return _dump(book.level2(args.depth))


def _run_fills(args: argparse.Namespace, market: MarketConfig) -> str:
    queue = decode_event_queue(_load_account(args.account, args.base64), history=args.history)
    return _dump(parse_fills(queue, market))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slab-book",
        description="Decode order book and event queue accounts into JSON",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def _common(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--market",
            type=Path,
            required=True,
            help="Path to market JSON config (lot sizes and decimals).",
        )
        p.add_argument(
            "--account",
            type=Path,
            required=True,
            help="Path to the raw account data.",
        )
        p.add_argument(
            "--base64",
            action="store_true",
            help="Account file holds base64 text instead of raw bytes.",
        )

    book = sub.add_parser("book", help="Print L2 levels (or every order) of a bids/asks account.")
    _common(book)
    book.add_argument("--depth", type=int, default=20, help="Number of price levels.")
    book.add_argument("--orders", action="store_true", help="Print every order, best first.")
    book.set_defaults(handler=_run_book)

    fills = sub.add_parser("fills", help="Print fills found in an event queue account.")
    _common(fills)
    fills.add_argument(
        "--history",
        type=int,
        default=None,
        help="Read the N most recent slots instead of the live events.",
    )
    fills.set_defaults(handler=_run_fills)

    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    try:
        market = MarketConfig.from_json_obj(_load_json(args.market))
        output = args.handler(args, market)
    except (SlabBookError, ValidationError, FileNotFoundError, ValueError) as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
