"""Monitor harness: connect to a switcher, optionally send one command, log state.

Runs the engine's tick loop on asyncio, reconnecting with exponential backoff
when the connection drops. Useful for checking a switcher from the command line
and for watching the Prometheus metrics while doing so.

Example:
    atem-monitor --host 192.168.1.240 --command preview --source 3 --duration 5
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable

from atem_controller.const import (
    ATEM_ENABLE_EXPORTER,
    ATEM_HOST,
    ATEM_LOCAL_PORT,
    ATEM_METRICS_PORT,
    ATEM_PORT,
    TICK_INTERVAL_MS,
)
from atem_controller.inputs import input_description
from atem_controller.logging_abstraction import get_logger
from atem_controller.metrics import start_metrics_server
from atem_controller.switcher import AtemSwitcher, SwitcherCallbacks
from atem_controller.transport import ConnectionState, RetryPolicy, SendResult, UDPConnection

logger = logging.getLogger(__name__)

COMMAND_CHOICES = ("none", "preview", "program", "cut", "auto", "ftb")


def setup_logging(level: str, log_format: str | None = None) -> None:
    """Configure the package logger tree for console use."""
    _ = get_logger("atem_controller", log_format=log_format, level=getattr(logging, level))


def build_callbacks() -> SwitcherCallbacks:
    """Callbacks that log every notification."""
    return SwitcherCallbacks(
        on_connection_state_changed=lambda state: logger.info("Connection: %s", state.value),
        on_program_input_changed=lambda source: logger.info(
            "Program: %d (%s)", source, input_description(source)
        ),
        on_preview_input_changed=lambda source: logger.info(
            "Preview: %d (%s)", source, input_description(source)
        ),
    )


def issue_command(switcher: AtemSwitcher, command: str, source: int | None) -> SendResult | None:
    """Send the requested command. Returns None for ``none``."""
    if command == "none":
        return None
    if command in ("preview", "program"):
        if source is None:
            msg = f"--source is required for {command}"
            raise ValueError(msg)
        if command == "preview":
            return switcher.change_preview_input(source)
        return switcher.change_program_input(source)
    if command == "cut":
        return switcher.cut()
    if command == "auto":
        return switcher.auto_transition()
    return switcher.fade_to_black_toggle()


async def run_monitor(
    switcher: AtemSwitcher,
    command: str = "none",
    source: int | None = None,
    duration_seconds: float = 0.0,
    max_attempts: int = 3,
    retry_policy: RetryPolicy | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> int:
    """Tick the engine until ``duration_seconds`` elapse (0 = forever).

    Args:
        switcher: Engine to drive
        command: One of COMMAND_CHOICES, sent once after the first handshake
        source: Source ID for preview/program
        duration_seconds: How long to stay connected (0 = until cancelled)
        max_attempts: Consecutive failed attempts before giving up (reset on every handshake)
        retry_policy: Backoff between attempts
        sleep: Awaitable sleep (injected in tests)

    Returns:
        Process exit code (0 on success)
    """
    retry_policy = retry_policy or RetryPolicy()
    tick_seconds = TICK_INTERVAL_MS / 1000.0
    command_sent = command == "none"
    attempt = 1
    duration_ms = int(duration_seconds * 1000)
    started_ms = switcher.clock.now()

    _ = switcher.connect()
    try:
        while duration_ms <= 0 or switcher.clock.now() - started_ms < duration_ms:
            switcher.tick()

            if switcher.connection_state == ConnectionState.ERROR:
                if attempt >= max_attempts:
                    logger.error(
                        "All %d connection attempts failed: %s",
                        max_attempts,
                        switcher.last_error,
                    )
                    return 1
                delay = retry_policy.get_delay(attempt - 1)
                logger.warning(
                    "Connection failed, retrying in %.2fs (attempt %d/%d)",
                    delay,
                    attempt,
                    max_attempts,
                )
                await sleep(delay)
                attempt += 1
                _ = switcher.connect()
                continue

            if switcher.is_connected:
                # Each completed handshake starts a fresh attempt budget
                attempt = 1

            if switcher.is_connected and not command_sent:
                result = issue_command(switcher, command, source)
                command_sent = True
                if result is not None and not result.success:
                    logger.error("Command %s failed: %s", command, result.reason)
                    return 1
                logger.info("Command %s sent", command)

            await sleep(tick_seconds)
    finally:
        logger.info("Connection info: %s", switcher.connection_info())
        switcher.disconnect()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Monitor and control an ATEM switcher over UDP")
    parser.add_argument(
        "--host",
        default=ATEM_HOST,
        required=ATEM_HOST is None,
        help="Switcher IP address or hostname (default: $ATEM_HOST)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=ATEM_PORT,
        help=f"Switcher UDP port (default: {ATEM_PORT})",
    )
    parser.add_argument(
        "--local-port",
        type=int,
        default=ATEM_LOCAL_PORT,
        help=f"Local UDP port, 0 for any (default: {ATEM_LOCAL_PORT})",
    )
    parser.add_argument(
        "--command",
        default="none",
        choices=COMMAND_CHOICES,
        help="Command to send once connected (default: none)",
    )
    parser.add_argument(
        "--source",
        type=int,
        default=None,
        help="Source ID for preview/program",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=0.0,
        help="Seconds to stay connected, 0 = until interrupted (default: 0)",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=3,
        help="Consecutive failed connection attempts before exiting (default: 3)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["human", "json", "both"],
        help="Log format (default: $ATEM_LOG_FORMAT)",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=ATEM_METRICS_PORT if ATEM_ENABLE_EXPORTER else None,
        help="Serve Prometheus metrics on this port (default: off unless $ATEM_ENABLE_EXPORTER)",
    )

    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_format)

    if args.metrics_port is not None:
        try:
            start_metrics_server(args.metrics_port)
        except OSError:
            logger.exception("Failed to start metrics server on port %d", args.metrics_port)
            return 1
        logger.info("Metrics server started on port %d", args.metrics_port)

    switcher = AtemSwitcher(
        args.host,
        args.port,
        transport=UDPConnection(local_port=args.local_port, peer=(args.host, args.port)),
        callbacks=build_callbacks(),
    )

    try:
        return asyncio.run(
            run_monitor(
                switcher,
                command=args.command,
                source=args.source,
                duration_seconds=args.duration,
                max_attempts=args.max_attempts,
            )
        )
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
