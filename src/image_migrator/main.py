"""Main module for the image migrator CLI."""

import sys
import argparse
from typing import List, Optional

from . import __version__
from .run_migration import add_migration_arguments, execute


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the unified command-line interface (CLI) of the image migrator.

    Sets up an `ArgumentParser` with the "migrate" and "version" commands.
    "migrate" hands the parsed arguments to `run_migration.execute`.
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="image-migrator",
        description="Image Migrator - move embedded record images to object storage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Migrate with default settings (1000 records per page, 10 at a time)
  DB_DATABASE=app AWS_BUCKET=media image-migrator migrate

  # Smaller pages, more workers, custom key prefix
  image-migrator migrate --batch-size 200 --concurrency 20 --key-prefix avatars/

  # Show version
  image-migrator version
        """,
    )

    subparsers: argparse._SubParsersAction = parser.add_subparsers(
        dest="command", help="Available commands"
    )

    migrate_parser: argparse.ArgumentParser = subparsers.add_parser(
        "migrate", help="Migrate embedded images to object storage"
    )
    add_migration_arguments(migrate_parser)

    subparsers.add_parser("version", help="Show version information")

    args: argparse.Namespace = parser.parse_args(argv)

    if args.command == "migrate":
        execute(args)

    elif args.command == "version":
        print("Image Migrator CLI")
        print(f"Version {__version__}")
        print("Embedded record images to S3-compatible object storage")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
