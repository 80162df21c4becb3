"""
Flitch command line interface.

Usage:
    flitch [switches] <directory>
    flitch [switches] <file>

    -s, --standard=STANDARD   Use specified coding standard
    -c, --checkstyle=FILENAME Generate checkstyle report
    -q, --quiet               Run silently
    -l, --list-rules          List the available rules
    -h, --help                Print usage information
    -v, --version             Print version information

Exit status: 0 when no error-level violations were found, 1 when some
were, 2 when the run could not start (unknown standard, bad config).
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from flitch.config import FlitchConfig
from flitch.errors import ConfigError, StandardFormatError, StandardNotFound
from flitch.file.discovery import discover_files
from flitch.file.source_file import SourceFile
from flitch.file.tokenizer import tokenize
from flitch.report import CheckstyleReport, ConsoleReport, Report
from flitch.rules import RuleManager, RuleRegistry, RuleSet, default_registry
from flitch.standard.resolver import StandardResolver
from flitch.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flitch",
        description="Check PHP files against a coding standard",
    )
    parser.add_argument("paths", nargs="*", help="Files or directories to check")
    parser.add_argument("-s", "--standard", metavar="STANDARD",
                        help="Use specified coding standard (default: ZF2)")
    parser.add_argument("-c", "--checkstyle", metavar="FILENAME",
                        help="Generate checkstyle report")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Run silently")
    parser.add_argument("-l", "--list-rules", action="store_true",
                        help="List the available rules")
    parser.add_argument("-v", "--version", action="version",
                        version=f"Flitch {__version__}")
    parser.add_argument("--config", type=Path, metavar="FILENAME",
                        help="Read configuration from this YAML file")
    return parser


def configure_logging(quiet: bool = False) -> None:
    if os.environ.get("FLITCH_DEBUG"):
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def print_rules(registry: RuleRegistry) -> None:
    """One line per registered rule: id and description."""
    for rule_id in registry.ids():
        description = getattr(registry.get(rule_id), "description", "")
        print(f"  {rule_id:<22} {description}")


def analyze_file(path: Path, manager: RuleManager, rule_set: RuleSet) -> Optional[SourceFile]:
    """Read, tokenize and check one file. None if it cannot be read."""
    try:
        content = path.read_bytes()
    except OSError as e:
        logger.warning(f"Cannot open {path}: {e}")
        return None
    file = tokenize(str(path), content)
    manager.check(file, rule_set)
    return file


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.quiet)

    if not args.quiet:
        print(f"Flitch {__version__}\n")

    if args.list_rules:
        print_rules(default_registry)
        return EXIT_OK

    if not args.paths:
        parser.print_help()
        return EXIT_OK

    try:
        config = FlitchConfig(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    resolver = StandardResolver(config.builtin_standards_dir, config.user_standards_dir)
    try:
        standard = resolver.resolve(args.standard or config.standard)
    except (StandardNotFound, StandardFormatError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    manager = RuleManager()
    rule_set = manager.prepare(standard)

    reports: List[Report] = []
    if not args.quiet:
        reports.append(ConsoleReport(sys.stdout))
    if args.checkstyle:
        reports.append(CheckstyleReport(args.checkstyle))

    has_errors = False
    for path, readable in discover_files(args.paths, config.extensions, config.exclude_dirs):
        if not readable:
            print(f"Cannot open {path}", file=sys.stderr)
            continue
        file = analyze_file(path, manager, rule_set)
        if file is None:
            continue
        has_errors = has_errors or bool(file.errors)
        for report in reports:
            report.add_file(file)

    for report in reports:
        report.close()

    return EXIT_VIOLATIONS if has_errors else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
