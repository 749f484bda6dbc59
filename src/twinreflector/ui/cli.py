from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from pydantic import ValidationError

from twinreflector.app import provision_tenant, send_message, serve
from twinreflector.config import ConfigurationError, configure_logging
from twinreflector.domain.errors import CorrelationTimeout
from twinreflector.domain.model import IngressMessage, MessageType

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="twinreflector",
        description="Reflect device lifecycle messages into the digital twin graph",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Consume the ingress stream until interrupted")
    subparsers.add_parser(
        "provision",
        help="Ensure the tenant space, its IoT hub and the device event endpoint exist",
    )

    send = subparsers.add_parser("send", help="Send one message and wait for its feedback")
    send.add_argument(
        "--type",
        dest="message_type",
        required=True,
        choices=[str(member) for member in MessageType],
        help="Lifecycle message type",
    )
    send.add_argument("payload", help="Path to the JSON payload, or - for stdin")
    send.add_argument(
        "--max-wait",
        type=float,
        default=60.0,
        help="Seconds to wait for the feedback (default: 60)",
    )

    return parser.parse_args(list(argv))


def _load_message(source: str) -> IngressMessage:
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    return IngressMessage.model_validate_json(text)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    message: IngressMessage | None = None
    if parsed_args.command == "send":
        try:
            message = _load_message(parsed_args.payload)
        except (OSError, ValidationError) as exc:
            print(f"Cannot read payload {parsed_args.payload}: {exc}", file=sys.stderr)  # noqa: T201
            sys.exit(2)

    try:
        if parsed_args.command == "serve":
            serve()
        elif parsed_args.command == "provision":
            setup = provision_tenant()
            print(setup.tenant_id)  # noqa: T201
        elif parsed_args.command == "send" and message is not None:
            sent = send_message(
                message,
                MessageType(parsed_args.message_type),
                max_wait=parsed_args.max_wait,
            )
            print(sent.feedback.to_json())  # noqa: T201
            if not sent.succeeded:
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    except CorrelationTimeout as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error running %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
