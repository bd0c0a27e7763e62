"""Probe agent command line entry point.

Runs a single protocol test, e.g.

    python -m probe_agent smtp mail.example.com --line "with port 2525"
"""

import argparse
import asyncio
import json
import sys

from probe_agent.core.config import get_settings
from probe_agent.core.logger import setup_logger
from probe_agent.protocols import ProbeOptions, UnknownProtocolError
from probe_agent.protocols.registry import (
    execute_protocol_test, get_protocol_info, list_supported_protocols
)


EXIT_FAILED = 1
EXIT_UNKNOWN_PROTOCOL = 2


def positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Network health-check probe")

    parser.add_argument("protocol", nargs="?", help="Protocol to test (see --list)")
    parser.add_argument("target", nargs="?", help="Host name or IP address to test")

    parser.add_argument(
        "--line",
        default="",
        help="Instruction line with protocol arguments, e.g. 'with port 2525'"
    )

    parser.add_argument(
        "--timeout",
        type=positive_float,
        help="Timeout in seconds (default: PROBE_TIMEOUT or 10)"
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="List supported protocols and exit"
    )

    parser.add_argument(
        "--log-level",
        "-l",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        help="Log file path"
    )

    args = parser.parse_args(argv)
    if not args.list and not (args.protocol and args.target):
        parser.error("protocol and target are required unless --list is given")
    return args


def list_protocols() -> None:
    for protocol in list_supported_protocols():
        info = get_protocol_info(protocol)
        print(f"{protocol} (default port {info['default_port']})")
        print(info['example'])
        print()


async def run(args) -> int:
    settings = get_settings()
    options = ProbeOptions.from_settings(settings)
    if args.timeout is not None:
        options = ProbeOptions(timeout=args.timeout, banner_limit=options.banner_limit)

    try:
        result = await execute_protocol_test(args.protocol, args.target, args.line, options)
    except UnknownProtocolError as e:
        print(f"{e}. Supported: {', '.join(list_supported_protocols())}", file=sys.stderr)
        return EXIT_UNKNOWN_PROTOCOL

    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.succeeded else EXIT_FAILED


def main(argv=None) -> int:
    """Main function."""
    args = parse_args(argv)
    settings = get_settings()

    setup_logger(
        level=args.log_level or settings.log_level,
        log_file=args.log_file or settings.log_file
    )

    if args.list:
        list_protocols()
        return 0

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
