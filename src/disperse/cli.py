"""
Command-line interface for Disperse.

Runs a distribution against a JSON world-state file. The file is rewritten
only when the whole batch succeeds.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

import structlog

from disperse import __version__
from disperse.config import DisperseConfig, set_config
from disperse.core.distributor import BatchDistributor
from disperse.core.errors import DisperseError
from disperse.core.result import DistributionResult
from disperse.recipients import parse_recipients, split_recipients
from disperse.state.world import World


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--state",
        required=True,
        help="Path to the JSON world-state file",
    )
    parser.add_argument(
        "--distributor",
        help="Custody address of the distributor (default: from config)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )


def _add_batch_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--sender",
        required=True,
        help="Paying account",
    )
    parser.add_argument(
        "--recipients",
        required=True,
        help="CSV or JSON recipient file (address,amount[,label])",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the distribution without saving the resulting state",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="disperse",
        description="Atomic batch distribution of native value and tokens",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Native command
    native_parser = subparsers.add_parser("native", help="Distribute native value")
    _add_common_arguments(native_parser)
    _add_batch_arguments(native_parser)
    native_parser.add_argument(
        "--value",
        type=int,
        required=True,
        help="Attached value; the excess is refunded to the sender",
    )

    # Token command
    token_parser = subparsers.add_parser("token", help="Distribute a token")
    _add_common_arguments(token_parser)
    _add_batch_arguments(token_parser)
    token_parser.add_argument(
        "--token",
        required=True,
        help="Token symbol in the state file",
    )
    token_parser.add_argument(
        "--direct",
        action="store_true",
        help="Transfer straight from the sender instead of pooling in custody",
    )

    # Show command
    show_parser = subparsers.add_parser("show", help="Print the world state")
    _add_common_arguments(show_parser)

    return parser


def _build_config(args: argparse.Namespace) -> DisperseConfig:
    overrides = {
        "log_level": args.log_level,
        "log_json": args.log_json,
    }
    if args.distributor:
        overrides["distributor_address"] = args.distributor
    return DisperseConfig(**overrides)


async def run_distribution(args: argparse.Namespace, world: World, config: DisperseConfig) -> DistributionResult:
    """Run the distribution selected by the command line."""
    recipients, amounts = split_recipients(parse_recipients(args.recipients))
    distributor = BatchDistributor(world.native, world.journal, config=config)

    if args.command == "native":
        return await distributor.distribute_native(args.sender, recipients, amounts, args.value)

    if args.token not in world.tokens:
        raise ValueError(f"Unknown token '{args.token}' in state file")
    ledger = world.tokens[args.token]
    if args.direct:
        return await distributor.distribute_token_direct(ledger, args.sender, recipients, amounts)
    return await distributor.distribute_token_pooled(ledger, args.sender, recipients, amounts)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = _build_config(args)
    set_config(config)
    setup_logging(config.log_level, config.log_json)

    try:
        world = World.load(args.state)
    except (OSError, ValueError) as e:
        print(f"Error: cannot load state: {e}", file=sys.stderr)
        return 1

    if args.command == "show":
        print(json.dumps(world.to_dict(), indent=2, sort_keys=True))
        return 0

    try:
        result = asyncio.run(run_distribution(args, world, config))
    except DisperseError as e:
        print("=== Disperse distribution: FAILED ===", file=sys.stderr)
        print(f"Error [{e.kind.value}]: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(result.summary())
    if args.dry_run:
        print("Dry run: state not saved")
    else:
        world.dump(args.state)
    return 0


if __name__ == "__main__":
    sys.exit(main())
