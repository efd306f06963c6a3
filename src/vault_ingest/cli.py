"""Command-line interface for the vault ingest flow."""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from schemas.config import IngestFlowConfig
from schemas.deposit import State
from vault_ingest.exceptions import OutboxError
from vault_ingest.identifiers import IdMinter
from vault_ingest.pipeline.orchestrator import IngestFlow

DEFAULT_VALIDATOR_URL = "http://localhost:20330"
DEFAULT_CATALOG_URL = "http://localhost:20305"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def load_config(args: argparse.Namespace) -> IngestFlowConfig | None:
    """Build the configuration from --config or from explicit paths.

    Returns:
        The configuration, or None after logging why it could not be built
    """
    logger = logging.getLogger(__name__)

    if args.config is not None:
        if not args.config.exists():
            logger.error(f"Configuration file not found: {args.config}")
            return None
        try:
            return IngestFlowConfig.from_file(args.config)
        except (ValueError, PydanticValidationError) as e:
            logger.error(f"Invalid configuration in {args.config}: {e}")
            return None

    missing = [
        f"--{name.replace('_', '-')}"
        for name in ("inbox", "outbox", "output")
        if getattr(args, name) is None
    ]
    if missing:
        logger.error(f"Must specify either --config or {', '.join(missing)}")
        return None

    return IngestFlowConfig(
        inbox=args.inbox,
        outbox=args.outbox,
        rda_bag_output_dir=args.output,
        validate_dans_bag={"base_url": args.validator_url},
        vault_catalog={"base_url": args.catalog_url},
        update_detection=args.update_detection,
    )


def convert(args: argparse.Namespace) -> int:
    """Execute the convert command.

    Args:
        args: Parsed command-line arguments

    Returns:
        0 if the deposit was accepted, 1 if it was rejected or failed,
        2 if it could not be moved to the outbox
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    deposit_path = args.deposit.resolve()
    if not deposit_path.is_dir():
        logger.error(f"Deposit directory not found: {deposit_path}")
        return 1

    config = load_config(args)
    if config is None:
        return 1

    try:
        with IngestFlow(config) as flow:
            state = flow.convert(deposit_path)
    except OutboxError as e:
        logger.error(f"Deposit left in place: {e}")
        return 2

    logger.info(f"Deposit {deposit_path.name}: {state.value}")
    return 0 if state is State.ACCEPTED else 1


def run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 unless deposits were left in the inbox)
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    config = load_config(args)
    if config is None:
        return 1

    if not config.inbox.is_dir():
        logger.error(f"Inbox not found: {config.inbox}")
        return 1

    with IngestFlow(config) as flow:
        area = flow.ingest_area()
        if args.watch:
            area.run_forever()
        else:
            results = area.run_once()
            counts = {state.value: 0 for state in State if state.is_terminal}
            for state in results.values():
                counts[state.value] += 1
            logger.info(f"Processed {len(results)} deposits")
            for name, count in counts.items():
                logger.info(f"  {name}: {count}")

    if area.stuck:
        logger.error(f"{len(area.stuck)} deposits were left in the inbox:")
        for path in sorted(area.stuck):
            logger.error(f"    - {path.name}")
        return 2
    return 0


def status(args: argparse.Namespace) -> int:
    """Execute the status command."""
    setup_logging(args.verbose)

    config = load_config(args)
    if config is None:
        return 1

    with IngestFlow(config) as flow:
        snapshot = flow.ingest_area().snapshot()

    print(json.dumps(snapshot, indent=2))
    return 0


def mint(args: argparse.Namespace) -> int:
    """Execute the mint command."""
    setup_logging(args.verbose)

    minter = IdMinter()
    for _ in range(args.count):
        print(minter.mint_urn_nbn())
    return 0


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON configuration file",
    )
    parser.add_argument(
        "--inbox",
        type=Path,
        default=None,
        help="Inbox directory (without --config)",
    )
    parser.add_argument(
        "--outbox",
        type=Path,
        default=None,
        help="Outbox directory (without --config)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output directory for RDA bags (without --config)",
    )
    parser.add_argument(
        "--validator-url",
        type=str,
        default=DEFAULT_VALIDATOR_URL,
        help=f"Bag validator base URL (default: {DEFAULT_VALIDATOR_URL})",
    )
    parser.add_argument(
        "--catalog-url",
        type=str,
        default=DEFAULT_CATALOG_URL,
        help=f"Vault catalog base URL (default: {DEFAULT_CATALOG_URL})",
    )
    parser.add_argument(
        "--update-detection",
        choices=["never", "is-version-of"],
        default="never",
        help="How to recognize a new version of an existing dataset (default: never)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        prog="vault-ingest",
        description="Convert deposits into RDA bags for the data vault",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )

    convert_parser = subparsers.add_parser(
        "convert",
        help="Convert a single deposit into an RDA bag",
        description="Validate a deposit, register it with the vault catalog and write its RDA bag, then move it to the outbox.",
    )
    convert_parser.add_argument(
        "--deposit",
        type=Path,
        required=True,
        help="Path to the deposit directory",
    )
    _add_config_arguments(convert_parser)
    convert_parser.set_defaults(func=convert)

    run_parser = subparsers.add_parser(
        "run",
        help="Convert every deposit in the inbox",
        description="Convert all deposits in the inbox once, or keep watching the inbox with --watch.",
    )
    run_parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep polling the inbox until interrupted",
    )
    _add_config_arguments(run_parser)
    run_parser.set_defaults(func=run)

    status_parser = subparsers.add_parser(
        "status",
        help="Show the number of deposits in the inbox and outbox",
        description="Print the number of deposit directories in the inbox and in each outbox directory as JSON.",
    )
    _add_config_arguments(status_parser)
    status_parser.set_defaults(func=status)

    mint_parser = subparsers.add_parser(
        "mint",
        help="Print new URN:NBN identifiers",
        description="Mint new URN:NBN identifiers and print them, one per line.",
    )
    mint_parser.add_argument(
        "--count",
        type=int,
        default=1,
        help="Number of identifiers to mint (default: 1)",
    )
    mint_parser.set_defaults(func=mint)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
