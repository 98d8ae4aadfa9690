"""
Command-line interface for backup rotation.

Rotates a directory of timestamped backups: keeps the newest backups plus
daily, weekly, monthly and yearly generations, exposes them as symlinks in a
destination directory and deletes the rest.
"""

import argparse
import logging
import sys
from contextlib import nullcontext
from typing import List, Optional

from rotator.monitoring.rotation_metrics import configure_structlog
from rotator.storage.rotation_config import RotationConfig, load_rotation_config
from rotator.storage.rotation_errors import RotationError
from rotator.storage.rotation_lock import RunLock
from rotator.storage.rotation_manager import RotationManager
from rotator.storage.rotation_models import SelectionSet

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2
EXIT_INTERRUPTED = 130


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    # stdout is reserved for the report.
    configure_structlog()


def format_tags(selection: SelectionSet, name: str) -> str:
    return "[" + " ".join(tag.value for tag in selection.tags_for(name)) + "]"


def print_selection(selection: SelectionSet, label: str = "Linked file"):
    for backup in selection:
        print(f"{label}: {backup.name} Tags: {format_tags(selection, backup.name)}")


def build_config(args) -> RotationConfig:
    return load_rotation_config(
        args.config,
        source=args.source,
        destination=args.destination,
        filename_suffix=args.suffix,
        dry_run=getattr(args, 'dry_run', None),
        keep=args.keep,
        keep_days=args.keep_days,
        keep_weeks=args.keep_weeks,
        keep_months=args.keep_months,
        keep_years=args.keep_years,
        logs_dir=getattr(args, 'logs_dir', None),
        metrics_textfile=getattr(args, 'metrics_file', None),
        lock_path=getattr(args, 'lock_file', None),
    )


def rotate_command(args) -> int:
    """Run a full rotation."""
    config = build_config(args)
    if not args.verbose:
        logging.getLogger().setLevel(config.log_level)

    lock = RunLock(config.lock_path) if config.lock_path else nullcontext()
    with lock:
        result = RotationManager(config).run()

    print_selection(result.selection)

    mode = "would prune" if result.dry_run else "pruned"
    print(f"Kept {result.files_selected} of {result.files_found} backups, "
          f"{mode} {len(result.files_pruned)}, created {result.links_created} links")

    if result.link_failure:
        print(f"Linking stopped early: {result.link_failure}", file=sys.stderr)

    if result.prune_failures:
        print(f"Failed to remove {len(result.prune_failures)} backups:", file=sys.stderr)
        for path in result.prune_failures:
            print(f"  {path}", file=sys.stderr)

    if result.status == 'partial':
        return EXIT_PARTIAL
    return EXIT_OK


def plan_command(args) -> int:
    """Show what a rotation would keep and prune, without changing anything."""
    config = build_config(args)
    if not args.verbose:
        logging.getLogger().setLevel(config.log_level)

    scan, selection, to_prune = RotationManager(config).plan()

    print_selection(selection, label="Keep")
    for backup in to_prune:
        print(f"Prune: {backup.name}")
    print(f"Would keep {len(selection)} of {len(scan.files)} backups and prune {len(to_prune)}")
    return EXIT_OK


def add_policy_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('--source', help='Directory containing the backups')
    parser.add_argument('--destination', help='Directory receiving the symlinks')
    parser.add_argument('--suffix', help='Backup filename suffix after the timestamp (default: .sql.gz)')
    parser.add_argument('--keep', type=int, help='Number of most recent backups to keep (default: 5)')
    parser.add_argument('--keep-days', type=int, help='Number of daily backups to keep (default: 7)')
    parser.add_argument('--keep-weeks', type=int, help='Number of weekly backups to keep (default: 5)')
    parser.add_argument('--keep-months', type=int, help='Number of monthly backups to keep (default: 6)')
    parser.add_argument('--keep-years', type=int, help='Number of yearly backups to keep (default: 2)')


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='backup-rotator',
        description="Rotate backups with keeps and generations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rotate with the default policy
  backup-rotator rotate --source /var/backups/db --destination /var/backups/current

  # Show what would be removed without touching anything
  backup-rotator rotate --dry-run --source /var/backups/db --destination /var/backups/current

  # Preview the selection only
  backup-rotator plan --config configs/rotation.yaml
        """
    )

    parser.add_argument('--config', help='Path to rotation configuration file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    parser.add_argument('--log-file', help='Also write logs to this file')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    rotate_parser = subparsers.add_parser('rotate', help='Select, link and prune backups')
    add_policy_arguments(rotate_parser)
    rotate_parser.add_argument('--dry-run', '--dry', dest='dry_run', action='store_const', const=True,
                               help='Log deletions instead of performing them')
    rotate_parser.add_argument('--logs-dir', help='Directory for the JSONL audit trail')
    rotate_parser.add_argument('--metrics-file', help='Write Prometheus metrics to this textfile')
    rotate_parser.add_argument('--lock-file', help='Hold this lock file for the duration of the run')

    plan_parser = subparsers.add_parser('plan', help='Show the selection without changing anything')
    add_policy_arguments(plan_parser)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    setup_logging(args.verbose, args.log_file)

    try:
        if args.command == 'rotate':
            return rotate_command(args)
        elif args.command == 'plan':
            return plan_command(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return EXIT_ERROR

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return EXIT_INTERRUPTED
    except RotationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == '__main__':
    sys.exit(main())
