"""CLI to drive the price exchange API and listen to venue price streams.

Usage:
  poetry run exchange-cli health
  poetry run exchange-cli start 1 --interval-ms 60000
  poetry run exchange-cli order 1 3 5
  poetry run exchange-cli watch sync 1
  poetry run exchange-cli listen 1 --messages 5
"""
import argparse
import asyncio
import json
import sys

import httpx
import websockets


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def _post(client: httpx.Client, path: str, body: object | None = None) -> int:
    r = client.post(path, json=body)
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_health(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_status(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/exchange/status")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_products(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/venues/{args.venue_id}/products")
    r.raise_for_status()
    data = r.json()
    print(f"Found {len(data)} products for venue {args.venue_id}")
    print_json(data)
    return 0


def cmd_start(client: httpx.Client, args: argparse.Namespace) -> int:
    body = {"rebalanceIntervalMs": args.interval_ms} if args.interval_ms else None
    return _post(client, f"/venues/{args.venue_id}/exchange/start", body)


def cmd_stop(client: httpx.Client, args: argparse.Namespace) -> int:
    return _post(client, f"/venues/{args.venue_id}/exchange/stop")


def cmd_reset(client: httpx.Client, args: argparse.Namespace) -> int:
    return _post(client, f"/venues/{args.venue_id}/exchange/reset")


def cmd_order(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.post(
        f"/venues/{args.venue_id}/orders", json={"productIds": args.product_ids}
    )
    r.raise_for_status()
    data = r.json()
    print(f"{len(data)} price changes")
    print_json(data)
    return 0


def cmd_watch(client: httpx.Client, args: argparse.Namespace) -> int:
    return _post(client, f"/venues/{args.venue_id}/watch/{args.watch_cmd}")


def _ws_url(base_url: str) -> str:
    if base_url.startswith("https://"):
        return "wss://" + base_url[len("https://"):] + "/venues/stream"
    if base_url.startswith("http://"):
        return "ws://" + base_url[len("http://"):] + "/venues/stream"
    return base_url + "/venues/stream"


def cmd_listen(base_url: str, args: argparse.Namespace) -> int:
    """Subscribe to a venue over WebSocket and print events."""
    url = _ws_url(base_url)
    count = 0

    async def run() -> None:
        nonlocal count
        async with websockets.connect(url) as ws:
            await ws.send(json.dumps({"action": "subscribe", "venueId": args.venue_id}))
            print(
                f"Listening to venue {args.venue_id} at {url} "
                f"(duration={args.duration}s, max_messages={args.messages or 'unlimited'})",
                file=sys.stderr,
            )
            async for raw in ws:
                count += 1
                print_json(json.loads(raw))
                if args.messages and count >= args.messages:
                    return

    async def run_with_timeout() -> None:
        if args.duration and args.duration > 0:
            try:
                await asyncio.wait_for(run(), timeout=args.duration)
            except asyncio.TimeoutError:
                print(f"Stopped after {args.duration}s ({count} messages)", file=sys.stderr)
        else:
            await run()

    try:
        asyncio.run(run_with_timeout())
    except KeyboardInterrupt:
        print(f"\nStopped by user ({count} messages)", file=sys.stderr)
        return 130
    except (OSError, websockets.WebSocketException) as e:
        print(f"Stream error: {e}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Drive the price exchange API and listen to price streams.",
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
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command")

    subparsers.add_parser("health", help="GET / health check")
    subparsers.add_parser("status", help="GET /exchange/status")

    for name, help_text in [
        ("products", "GET /venues/{id}/products"),
        ("stop", "POST /venues/{id}/exchange/stop"),
        ("reset", "POST /venues/{id}/exchange/reset"),
    ]:
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("venue_id", type=int, help="Venue ID")

    p = subparsers.add_parser("start", help="POST /venues/{id}/exchange/start")
    p.add_argument("venue_id", type=int, help="Venue ID")
    p.add_argument(
        "--interval-ms", type=int, default=None, help="Rebalance interval in ms"
    )

    p = subparsers.add_parser("order", help="POST /venues/{id}/orders")
    p.add_argument("venue_id", type=int, help="Venue ID")
    p.add_argument("product_ids", type=int, nargs="+", help="Ordered product IDs")

    watch = subparsers.add_parser("watch", help="Change watcher control (/venues/{id}/watch)")
    watch.add_argument("watch_cmd", choices=["start", "stop", "sync"])
    watch.add_argument("venue_id", type=int, help="Venue ID")

    p = subparsers.add_parser("listen", help="WS /venues/stream: print a venue's events")
    p.add_argument("venue_id", type=int, help="Venue ID")
    p.add_argument(
        "--duration",
        type=float,
        default=None,
        metavar="SECS",
        help="Stop after SECS seconds (default: run until Ctrl+C)",
    )
    p.add_argument(
        "--messages",
        type=int,
        default=None,
        metavar="N",
        help="Stop after N messages (default: no limit)",
    )
    return parser


HANDLERS = {
    "health": cmd_health,
    "status": cmd_status,
    "products": cmd_products,
    "start": cmd_start,
    "stop": cmd_stop,
    "reset": cmd_reset,
    "order": cmd_order,
    "watch": cmd_watch,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    base_url = args.base_url.rstrip("/")

    if args.command == "listen":
        return cmd_listen(base_url, args)

    handler = HANDLERS[args.command]
    try:
        with httpx.Client(base_url=base_url, timeout=args.timeout) as client:
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
