"""Command-line interface for notify."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from aiohttp import web

from .config import load_config
from .errors import NotificationError, SendNotificationError
from .factory import build_notify
from .logging_setup import configure_logging
from .services import WeChatService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="notify-dispatch",
        description="Send a notification to every configured service",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in the working directory)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    send_parser = sub.add_parser("send", help="Send a message to all services")
    send_parser.add_argument("subject", help="Message subject")
    send_parser.add_argument("message", help="Message body")
    send_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-service timeout in seconds (overrides config)",
    )

    verify_parser = sub.add_parser(
        "wechat-verify", help="Wait for the one-off WeChat server verification"
    )
    verify_parser.add_argument("--host", default="0.0.0.0", help="Listen address")
    verify_parser.add_argument("--port", type=int, default=8080, help="Listen port")
    verify_parser.add_argument(
        "--dev-mode",
        action="store_true",
        help="Sandbox mode: accept the request without a signature check",
    )

    return parser


def _log_verification(request: web.Request, verified: bool) -> None:
    logger.info("Verification request from %s: verified=%s", request.remote, verified)


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command and return the exit status."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "send":
        notify = build_notify(config)
        timeout = args.timeout if args.timeout is not None else config.notify.timeout
        try:
            await notify.send(args.subject, args.message, timeout=timeout)
        except SendNotificationError as e:
            logger.error("%s", e)
            return 1
        logger.info("Notification sent")
        return 0

    if args.command == "wechat-verify":
        service = WeChatService(config.services.wechat)
        try:
            await service.wait_for_one_off_verification(
                args.host, args.port, dev_mode=args.dev_mode, callback=_log_verification
            )
        except NotificationError as e:
            logger.error("%s", e)
            return 1
        return 0

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
