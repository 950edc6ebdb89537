"""CLI to exercise a running watchlist service.

Usage:
  watchlist-cli health
  watchlist-cli --token TOKEN list
  watchlist-cli --token TOKEN add aapl "Apple Inc."
  watchlist-cli --token TOKEN remove AAPL
  watchlist-cli symbols user@example.com
  watchlist-cli --token TOKEN watch --messages 5
"""
import argparse
import asyncio
import json
import sys

import httpx
import websockets


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def _print_action(data: dict) -> int:
    print_json(data)
    return 0 if data.get("ok") else 1


def cmd_health(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_list(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/watchlist/items" if args.raw else "/watchlist")
    r.raise_for_status()
    data = r.json()
    print(f"Found {len(data)} watchlist entries", file=sys.stderr)
    print_json(data)
    return 0


def cmd_add(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.post("/watchlist", json={"symbol": args.symbol, "company": args.company})
    r.raise_for_status()
    return _print_action(r.json())


def cmd_remove(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.delete(f"/watchlist/{args.symbol}")
    r.raise_for_status()
    return _print_action(r.json())


def cmd_symbols(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/watchlist/symbols", params={"email": args.email})
    r.raise_for_status()
    print_json(r.json())
    return 0


def _ws_url(base_url: str) -> str:
    if base_url.startswith("https://"):
        return "wss://" + base_url[len("https://"):] + "/watchlist/stream"
    return "ws://" + base_url.removeprefix("http://") + "/watchlist/stream"


def _watch_run(base_url: str, headers: dict[str, str], max_messages: int | None) -> int:
    """Print invalidation events from /watchlist/stream."""
    count = 0

    async def run() -> None:
        nonlocal count
        async with websockets.connect(_ws_url(base_url), additional_headers=headers) as ws:
            async for raw in ws:
                count += 1
                print_json(json.loads(raw))
                if max_messages and count >= max_messages:
                    return

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        print(f"\nStopped by user ({count} messages)", file=sys.stderr)
        return 130
    except websockets.ConnectionClosed as e:
        print(f"Stream closed: {e}", file=sys.stderr)
        return 1
    except (OSError, websockets.InvalidHandshake) as e:
        print(f"Stream error: {e}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Exercise the watchlist service API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="API base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Request timeout in seconds (default: 30)",
    )
    parser.add_argument("--token", default=None, help="Session token (sent as Bearer)")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command")

    subparsers.add_parser("health", help="GET / health check")

    p = subparsers.add_parser("list", help="GET /watchlist (enriched)")
    p.add_argument("--raw", action="store_true", help="GET /watchlist/items instead")

    p = subparsers.add_parser("add", help="POST /watchlist")
    p.add_argument("symbol", help="Ticker (e.g. AAPL)")
    p.add_argument("company", help="Company name (e.g. 'Apple Inc.')")

    p = subparsers.add_parser("remove", help="DELETE /watchlist/{symbol}")
    p.add_argument("symbol", help="Ticker")

    p = subparsers.add_parser("symbols", help="GET /watchlist/symbols?email=")
    p.add_argument("email", help="Email of the watchlist owner")

    p = subparsers.add_parser("watch", help="WS /watchlist/stream invalidation events")
    p.add_argument(
        "--messages",
        type=int,
        default=None,
        metavar="N",
        help="Stop after N messages (default: no limit)",
    )
    return parser


def main(
    argv: list[str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    base_url = args.base_url.rstrip("/")
    headers = {"Authorization": f"Bearer {args.token}"} if args.token else {}

    if args.command == "watch":
        return _watch_run(base_url, headers, args.messages)

    handlers = {
        "health": cmd_health,
        "list": cmd_list,
        "add": cmd_add,
        "remove": cmd_remove,
        "symbols": cmd_symbols,
    }
    handler = handlers[args.command]

    try:
        with httpx.Client(
            base_url=base_url, timeout=args.timeout, headers=headers, transport=transport
        ) as client:
            return handler(client, args)
    except httpx.HTTPStatusError as e:
        print(f"HTTP error: {e.response.status_code}", file=sys.stderr)
        if e.response.content:
            try:
                print(e.response.json(), file=sys.stderr)
            except ValueError:
                print(e.response.text, file=sys.stderr)
        return 1
    except httpx.RequestError as e:
        print(f"Request error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
