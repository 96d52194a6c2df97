#!/usr/bin/env python3
"""
WordPress Content Sync - Main CLI Entry Point

This script provides the command-line interface for exporting WordPress
posts, pages, media and plugin data to a local tree, and importing such a
tree back into a WordPress site.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import yaml

from config_loader import ConfigLoader
from logger import log_config, setup_logging
from orchestrator import SetupError, SyncOrchestrator

__version__ = "1.0.0"


def _add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('-u', '--url', type=str, help='WordPress site URL (env: WP_REMOTE_URL)')
    parser.add_argument('--user', type=str, help='WordPress username (env: WP_REMOTE_USER)')
    parser.add_argument('--password', type=str, help='Application password (env: WP_REMOTE_APP_PASSWORD)')
    parser.add_argument(
        '-t', '--type',
        choices=['posts', 'pages', 'all'],
        help='Content type to sync (default: all)'
    )
    parser.add_argument('--no-media', action='store_true', help='Skip media transfer')
    parser.add_argument('--no-plugins', action='store_true', help='Skip site-wide plugin data')
    parser.add_argument('--config', type=str, help='Path to configuration YAML file')
    parser.add_argument('--log-file', type=str, help='Also write logs to this file')
    parser.add_argument('--report', type=str, help='Write the JSON run report to this file')
    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='wp-content-sync',
        description="Export and import WordPress content via the REST API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export published posts and pages
  wp-content-sync export --url https://example.com --user admin --password "xxxx xxxx"

  # Export drafts of pages only, without media
  wp-content-sync export -t pages -s draft --no-media -o ./site-export

  # Preview an import into another site
  wp-content-sync import -i ./site-export --mode sync --dry-run -v

  # Use a configuration file
  wp-content-sync import --config config.yaml
        """
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', required=True)

    export_parser = subparsers.add_parser('export', help='Export posts, pages and plugin data to files')
    _add_connection_arguments(export_parser)
    export_parser.add_argument('-o', '--output', type=str, help='Output directory (default: ./wp-export)')
    export_parser.add_argument(
        '-s', '--status',
        choices=['publish', 'draft', 'all'],
        help='Post status to export (default: publish)'
    )

    import_parser = subparsers.add_parser('import', help='Import exported files into a site')
    _add_connection_arguments(import_parser)
    import_parser.add_argument('-i', '--input', type=str, help='Input directory (default: ./wp-export)')
    import_parser.add_argument(
        '-m', '--mode',
        choices=['create', 'update', 'sync'],
        help='Import mode (default: sync)'
    )
    import_parser.add_argument('--dry-run', action='store_true', help='Show what would be imported without making changes')

    return parser


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Assemble the run configuration.

    Precedence: CLI flags, then config file, then WP_REMOTE_* environment,
    then built-in defaults.

    Raises:
        FileNotFoundError: If ``--config`` points to a missing file
        ValueError: If the resulting configuration is invalid
    """
    config = ConfigLoader.load(args.config) if args.config else {}
    config = ConfigLoader.apply_env_defaults(config)
    config = ConfigLoader.with_defaults(config)
    config = ConfigLoader.merge_with_args(config, args)
    ConfigLoader.validate(config)
    return config


def run(config: Dict[str, Any], command: str, report_path: Optional[str] = None) -> int:
    """
    Execute an export or import run.

    Returns:
        Process exit code
    """
    logger = logging.getLogger('wp_content_sync')
    orchestrator = SyncOrchestrator(config)

    try:
        if command == 'export':
            report = orchestrator.run_export()
        else:
            report = orchestrator.run_import()
    except SetupError as e:
        logger.error(str(e))
        return 1

    report.log_summary()
    print("\n" + report.format_console_report())

    if report_path:
        try:
            report.export_json_report(report_path)
        except OSError as e:
            logger.warning(f"Failed to export JSON report: {e}")

    if report.dry_run:
        logger.info("DRY RUN complete - no changes were made")
    elif report.failed:
        logger.warning(f"{command.capitalize()} completed with {len(report.failed)} failed item(s)")
    else:
        logger.info(f"{command.capitalize()} complete")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 1
    except yaml.YAMLError as e:
        print(f"ERROR: Invalid YAML in configuration file: {e}", file=sys.stderr)
        return 1

    try:
        setup_logging(
            verbosity=args.verbose,
            log_file=config.get('logging', {}).get('file'),
            level=config.get('logging', {}).get('level')
        )
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 1
    log_config(config)

    try:
        return run(config, args.command, args.report)
    except KeyboardInterrupt:
        print(f"\n{args.command.capitalize()} interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
