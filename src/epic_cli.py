"""
EPIC Image Downloader Command Line Interface

Usage:
    # Download the most recent day with images into ./images/<YYYY-MM-DD>/
    NASA_API_KEY=... python src/epic_cli.py download ./images

    # Download a specific day
    NASA_API_KEY=... python src/epic_cli.py download ./images 2023-11-15

    # Enhanced-color images, overwrite without asking, write a run summary
    python src/epic_cli.py download ./images 2023-11-15 \
        --category enhanced --yes --summary-file ./images/summary.json

    # Show the effective configuration (API key masked)
    python src/epic_cli.py show-config --config epic.yaml

Exit codes: 0 success, 1 failure or no pictures, 2 configuration error.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List

from acquisition_orchestrator import AcquisitionOrchestrator
from acquisition_types import AcquisitionRequest, NO_DATA
from config_manager import EpicConfig
from epic_client import EpicApiClient, IMAGE_CATEGORIES
from logging_utils import (
    ConfigurationError,
    ProcessingLogger,
    save_processing_session_summary,
    setup_epic_logging,
)

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2

OVERWRITE_QUESTION = 'The target folder already exists. Do you want to overwrite it? (yes/no) '


def prompt_overwrite_confirmation() -> bool:
    """Ask on the terminal whether an existing date folder may be reused."""
    try:
        answer = input(OVERWRITE_QUESTION)
    except EOFError:
        return False
    return answer.strip().lower() in ('y', 'yes')


def always_confirm() -> bool:
    """Confirmation used with --yes."""
    return True


def create_download_parser(subparsers) -> None:
    """Create the download subcommand."""

    parser = subparsers.add_parser(
        'download',
        help='Download EPIC images of a given day into a target folder'
    )

    parser.add_argument(
        'target_folder',
        help='Target folder for images (must exist and be writable)'
    )

    parser.add_argument(
        'date',
        nargs='?',
        default=None,
        help='Date for images, YYYY-MM-DD (optional - defaults to the last day with images)'
    )

    parser.add_argument(
        '--category',
        choices=IMAGE_CATEGORIES,
        default=None,
        help='EPIC image collection (default: natural)'
    )

    parser.add_argument(
        '--max-lookback-days',
        type=int,
        default=None,
        help='Maximum number of days to step back when no date is given'
    )

    parser.add_argument(
        '--yes',
        action='store_true',
        help='Overwrite an existing date folder without asking'
    )

    parser.add_argument(
        '--summary-file',
        type=str,
        default=None,
        help='Write a JSON summary of the run to this path'
    )

    add_common_arguments(parser)
    parser.set_defaults(func=handle_download)


def create_show_config_parser(subparsers) -> None:
    """Create the show-config subcommand."""

    parser = subparsers.add_parser(
        'show-config',
        help='Print the effective configuration (API key masked)'
    )

    add_common_arguments(parser)
    parser.set_defaults(func=handle_show_config)


def add_common_arguments(parser) -> None:
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='YAML or JSON configuration file'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=None,
        help='Logging level (default: INFO)'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write the log to this file'
    )


def build_cli_overrides(args) -> Dict[str, Any]:
    """Translate parsed arguments into nested configuration overrides."""
    overrides = {}

    if getattr(args, 'category', None):
        overrides.setdefault('api', {})['image_category'] = args.category
    if getattr(args, 'max_lookback_days', None) is not None:
        overrides.setdefault('acquisition', {})['max_lookback_days'] = args.max_lookback_days
    if getattr(args, 'yes', False):
        overrides.setdefault('acquisition', {})['assume_yes'] = True
    if args.log_level:
        overrides.setdefault('logging', {})['log_level'] = args.log_level
    if args.log_file:
        overrides.setdefault('logging', {})['log_file'] = args.log_file

    return overrides


def load_config(args) -> EpicConfig:
    """Build the configuration and set up logging from it."""
    config = EpicConfig(config_file=args.config, cli_args=build_cli_overrides(args))
    logging_config = config.get_logging_config()
    setup_epic_logging(logging_config['log_level'], logging_config['log_file'])
    return config


def handle_download(args) -> int:
    """Handle the download subcommand."""

    try:
        config = load_config(args)
        config.require_api_key()
    except ConfigurationError as e:
        setup_epic_logging(args.log_level or 'INFO')
        logger.error(f"✗ Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    acquisition_config = config.get_acquisition_config()
    if acquisition_config['assume_yes']:
        confirm_overwrite = always_confirm
    else:
        confirm_overwrite = prompt_overwrite_confirmation

    processing_logger = ProcessingLogger()
    orchestrator = AcquisitionOrchestrator(
        EpicApiClient.from_config(config),
        confirm_overwrite,
        max_lookback_days=acquisition_config['max_lookback_days'],
        processing_logger=processing_logger,
    )

    result = orchestrator.run(AcquisitionRequest(args.target_folder, args.date))

    if args.summary_file:
        summary = processing_logger.get_processing_summary()
        summary['result'] = result.to_dict()
        save_processing_session_summary(summary, args.summary_file)

    if result.is_success:
        logger.info("✓ Images downloaded and saved successfully.")
        logger.info(f"  Saved {result.saved_count} images from {result.effective_date.isoformat()}")
        logger.info(f"  Output directory: {args.target_folder}")
        return EXIT_SUCCESS

    if result.status == NO_DATA:
        logger.warning("✗ There are no pictures for this point in time.")
        return EXIT_FAILURE

    logger.error(f"✗ {result.reason}")
    return EXIT_FAILURE


def handle_show_config(args) -> int:
    """Handle the show-config subcommand."""

    try:
        config = load_config(args)
    except ConfigurationError as e:
        setup_epic_logging(args.log_level or 'INFO')
        logger.error(f"✗ Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    print(json.dumps(config.to_dict(), indent=2, default=str))
    return EXIT_SUCCESS


def main(argv: List[str] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments. If None, uses sys.argv[1:]

    Returns:
        int: Exit code (0 success, 1 failure, 2 configuration error)
    """

    parser = argparse.ArgumentParser(
        description='Download NASA EPIC images of a given day into a folder',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Most recent day with images
  %(prog)s download ./images

  # Specific day, enhanced colors
  %(prog)s download ./images 2023-11-15 --category enhanced

The API key is read from the NASA_API_KEY environment variable.
        '''
    )

    subparsers = parser.add_subparsers(
        title='commands',
        description='Available commands',
        dest='command',
        help='Command to execute'
    )

    create_download_parser(subparsers)
    create_show_config_parser(subparsers)

    args = parser.parse_args(argv)

    if hasattr(args, 'func'):
        return args.func(args)
    else:
        parser.print_help()
        return EXIT_FAILURE


if __name__ == '__main__':
    sys.exit(main())
