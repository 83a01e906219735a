"""Command line entry points: run the gateway, or send a test message through one."""

from __future__ import annotations

import argparse
import json
import sys

import httpx

from rcs_gateway.core.domain import MessageDialect


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rcs-gateway",
        description="RCS Business Messaging gateway.",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    serve = subcommands.add_parser("serve", help="Run the gateway HTTP service.")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting).")
    serve.add_argument("--port", type=int, default=None, help="Port (default: PORT setting).")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes.")

    send = subcommands.add_parser("send-text", help="Send a text message via a running gateway.")
    send.add_argument("msisdn", help="Destination number in international format.")
    send.add_argument("text", help="Message body.")
    send.add_argument(
        "--gateway-url",
        default="http://localhost:3000",
        help="Base URL of the gateway (default: %(default)s)",
    )
    send.add_argument(
        "--api-key",
        required=True,
        help="Internal API key sent as the bearer credential.",
    )
    send.add_argument(
        "--dialect",
        choices=[dialect.value for dialect in MessageDialect],
        default=None,
        help="Wire dialect override (default: gateway setting).",
    )
    send.add_argument(
        "--timeout",
        type=float,
        default=15.0,
        help="HTTP timeout in seconds (default: %(default)s).",
    )
    return parser


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from rcs_gateway.gateway.dependencies import get_settings

    settings = get_settings()
    uvicorn.run(
        "rcs_gateway.gateway.app:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def _send_text(args: argparse.Namespace) -> int:
    payload: dict[str, str] = {"msisdn": args.msisdn, "text": args.text}
    if args.dialect:
        payload["dialect"] = args.dialect

    with httpx.Client(base_url=args.gateway_url, timeout=args.timeout) as client:
        try:
            response = client.post(
                "/api/messages/text",
                json=payload,
                headers={"Authorization": f"Bearer {args.api_key}"},
            )
        except httpx.HTTPError as exc:
            print(f"! gateway unreachable: {exc}", file=sys.stderr)
            return 2

    if response.status_code != 200:
        print(f"! request failed ({response.status_code}): {response.text}", file=sys.stderr)
        return 1

    print(f"message id: {response.headers.get('X-Message-Id', '?')}")
    print(json.dumps(response.json(), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "serve":
        return _serve(args)
    return _send_text(args)


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
