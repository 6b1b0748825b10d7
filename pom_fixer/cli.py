"""
pom-fixer Command Line Interface
================================

Applies the findings of a dependency analysis to a ``pom.xml``.

Usage:
    pom-fixer pom.xml --request findings.yml
    pom-fixer pom.xml --remove junit:junit --add org.slf4j:slf4j-api@2.0.9
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pom_fixer.core.models import Addition, Identity
from pom_fixer.core.models.fix_options import FixOptions
from pom_fixer.core.request_file import load_request
from pom_fixer.core.services.fix_service import FixRequest, FixService
from pom_fixer.logging_config import setup_logging
from pom_fixer.version import get_app_version

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _parse_cli_addition(value: str) -> Addition:
    """Parse ``coordinates[@version][/scope]``."""
    coordinates, _, scope = value.partition("/")
    coordinates, _, version = coordinates.partition("@")
    return Addition.from_coordinates(coordinates, version or None, scope or None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pom-fixer",
        description="Remove unused and add missing dependency declarations in a pom.xml",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pom-fixer pom.xml --request findings.yml
  pom-fixer pom.xml --remove junit:junit
  pom-fixer pom.xml --add org.mockito:mockito-core@5.8.0/test
        """,
    )
    parser.add_argument("pom", type=Path, help="Path of the pom.xml to fix")
    parser.add_argument("-r", "--request", type=Path, help="YAML file listing remove/add/managed entries")
    parser.add_argument("--remove", action="append", default=[], metavar="COORDS",
                        help="groupId:artifactId[:type[:classifier]] to remove (repeatable)")
    parser.add_argument("--add", action="append", default=[], metavar="COORDS[@VERSION][/SCOPE]",
                        help="Dependency to add (repeatable)")
    parser.add_argument("--managed", action="append", default=[], metavar="COORDS",
                        help="Dependency whose version is managed elsewhere (repeatable)")
    parser.add_argument("--fail-on-warning", action="store_true", default=None,
                        help="Treat warnings as fatal errors")
    parser.add_argument("--verbose-output", action="store_true", default=None,
                        help="Print the declaration blocks that are added")
    parser.add_argument("--skip", action="store_true", default=None, help="Do nothing")
    parser.add_argument("--checkpoint", action="store_true", default=None,
                        help="Write <pom>.step1 after removals, before insertions")
    parser.add_argument("--resolve-parents", action="store_true", default=None,
                        help="Load parent poms to detect inherited dependencies")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_app_version()}")
    return parser


def _build_request(args: argparse.Namespace) -> FixRequest:
    request = load_request(args.request) if args.request else FixRequest()
    removals = set(request.unused_declared) | {Identity.parse(c) for c in args.remove}
    additions = list(request.used_undeclared) + [_parse_cli_addition(v) for v in args.add]
    managed = set(request.managed_keys) | {Identity.parse(c).management_key for c in args.managed}
    return FixRequest(frozenset(removals), tuple(additions), frozenset(managed))


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        request = _build_request(args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    options = FixOptions.from_config(
        fail_on_warning=args.fail_on_warning,
        verbose_output=args.verbose_output,
        skip=args.skip,
        checkpoint=args.checkpoint,
        resolve_parents=args.resolve_parents,
    )
    result = FixService(options).fix(args.pom, request)

    for warning in result.warnings:
        print(f"WARNING: {warning.message}", file=sys.stderr)
    if result.report:
        print(result.report, end="")
    if not result.success:
        print(f"ERROR [{result.kind.value if result.kind else 'unknown'}]: {result.message}", file=sys.stderr)
        return EXIT_FAILED
    print(result.message)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
