"""Command-line interface — argument parsing and wiring of one engine run."""

import logging
import os
import sys
from argparse import ArgumentParser, RawDescriptionHelpFormatter

from eventy import __version__
from eventy.config import build_query_config, load_settings, load_yaml_config
from eventy.console import Console
from eventy.engine import QueryEngine
from eventy.errors import ConfigurationError
from eventy.source import NdjsonLogSource

logger = logging.getLogger(__name__)

EPILOG = """\
examples:
  eventy                          list all available log names
  eventy Application              query the newest entries in Application
  eventy Application -m 0 -l error -s disk
  eventy System 123456            view a single record
  eventy 123456                   find a record id across all logs
"""


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="eventy",
        description="Query, filter, and export event log records.",
        epilog=EPILOG,
        formatter_class=RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "log_name",
        nargs="?",
        metavar="log-name",
        help="Log to query. Omit to list logs, or to search every log for a record id",
    )
    parser.add_argument(
        "record_id",
        nargs="?",
        metavar="record-id",
        help="Record id to view in full",
    )
    parser.add_argument(
        "-m", "--max",
        nargs="?",
        const="0",
        metavar="N",
        help="Max entries to list (default from config, 10). 0, negative, or a bare -m for all",
    )
    parser.add_argument(
        "-r", "--reverse",
        action="store_true",
        help="Read from the oldest entry instead of the newest",
    )
    parser.add_argument(
        "-f", "--from",
        dest="from_date",
        metavar="DATE",
        help="Only entries logged at or after DATE (YYYY-MM-DD [HH:MM:SS])",
    )
    parser.add_argument(
        "-t", "--to",
        dest="to_date",
        metavar="DATE",
        help="Only entries logged at or before DATE (YYYY-MM-DD [HH:MM:SS])",
    )
    parser.add_argument(
        "-l", "--level",
        action="append",
        metavar="LEVEL",
        help="Keep only this level: crit, error, warn, info, verbose or 0-5. Repeatable",
    )
    parser.add_argument(
        "-s", "--search",
        action="append",
        metavar="TERM",
        help="Case-insensitive search term. Repeatable",
    )
    parser.add_argument(
        "-a", "--all",
        action="store_true",
        help="Require all search terms to match (default: any)",
    )
    parser.add_argument(
        "-x", "--export",
        metavar="PATH",
        help="Write the result as JSON to PATH",
    )
    parser.add_argument(
        "--log-dir",
        help="Directory holding <LogName>.ndjson files (env EVENTY_LOG_DIR)",
    )
    parser.add_argument(
        "--config",
        default=os.environ.get("EVENTY_CONFIG"),
        help="Path to YAML config file (env EVENTY_CONFIG)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        help="Colorize output (default: auto)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log diagnostics to stderr",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _normalize_positionals(args) -> None:
    """A lone numeric positional is a record id to search across all logs."""
    if args.record_id is None and args.log_name is not None and args.log_name.isdigit():
        args.record_id, args.log_name = args.log_name, None


def run(argv=None, out=None, err=None) -> int:
    """Parse arguments, run one query, and return the process exit status."""
    args = build_parser().parse_args(argv)
    _normalize_positionals(args)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [EVENTY] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = load_settings(load_yaml_config(args.config), log_dir=args.log_dir, color=args.color)
        config = build_query_config(args, settings)
    except ConfigurationError as exc:
        Console(out=out, err=err, color=args.color or "auto").error(str(exc))
        return 1

    console = Console(out=out, err=err, color=settings.color)
    source = NdjsonLogSource(settings.log_dir, accounts=settings.accounts)
    engine = QueryEngine(source, console, max_read_errors=settings.max_read_errors)
    summary = engine.run(config)
    logger.debug("Summary: %s", summary)
    return 0


def main() -> None:
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)
