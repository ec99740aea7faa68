#!/usr/bin/env python3
"""
Record Image Migrator

Pages through the record table → decodes each embedded image → saves a local
copy → uploads it to object storage → points the record at the uploaded URL.

Connection settings come from the environment (DB_*, AWS_*); run-time knobs
come from the command line.
"""

import argparse
import os
import sys
from typing import List, Optional

from .core import ImageMigratorError, apply_log_level, get_logger, load_config
from .core.factories import MigrationPipelineFactory, WorkerPoolFactory


def add_migration_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Register the migration options on ``parser``."""
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Records fetched per page (default: 1000)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum records migrated at once (default: 10)",
    )
    parser.add_argument(
        "--start-after",
        type=int,
        default=None,
        help="Only migrate records with an id greater than this (default: 0)",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for local image copies (default: ./images)",
    )
    parser.add_argument(
        "--key-prefix",
        default=None,
        help="Object key prefix in the bucket (default: mybl-tests/)",
    )
    parser.add_argument(
        "--processor",
        type=str,
        default=None,
        choices=["serial", "multithread"],
        help="Concurrency strategy to use (default: multithread)",
    )
    parser.add_argument(
        "--verify-images",
        action="store_true",
        help="Reject payloads that Pillow cannot open",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for the image migrator.

    Returns:
        An `argparse.Namespace` object containing the parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Migrate embedded record images to object storage"
    )
    add_migration_arguments(parser)
    return parser.parse_args(argv)


def execute(args: argparse.Namespace) -> None:
    """
    Run a full migration for already-parsed arguments.

    Exits with status 1 on a fatal error and 130 when interrupted. Per-record
    failures are only logged and do not change the exit status.
    """
    if args.debug:
        apply_log_level("DEBUG")
    logger = get_logger("image-migrator")

    try:
        config = load_config(
            os.environ,
            batch_size=args.batch_size,
            concurrency=args.concurrency,
            start_after=args.start_after,
            output_dir=args.output_dir,
            key_prefix=args.key_prefix,
            processor=args.processor,
            verify_images=args.verify_images or None,
            debug=args.debug or None,
        )

        connection_pool = MigrationPipelineFactory.create_connection_pool(config)
        try:
            connection_pool.ping()
            with WorkerPoolFactory.create_worker_pool(config) as worker_pool:
                driver = MigrationPipelineFactory.create_driver(
                    config, connection_pool=connection_pool, worker_pool=worker_pool
                )
                driver.run()
        finally:
            connection_pool.close_all()

        logger.info("All user images processed. Exiting the program...")

    except KeyboardInterrupt:
        logger.warning("Migration interrupted by user.")
        sys.exit(130)
    except ImageMigratorError as e:
        logger.error(f"Migration failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Migration failed: {e}", exc_info=True)
        sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for running the migration directly."""
    execute(parse_args(argv))


if __name__ == "__main__":
    main()
