#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
ROM Audit - command line entry point

Audits a directory of ROM set archives against a MAME-style catalog and prints
one line per problem found. Exit status: 0 when every set verified, 1 when any
diagnostic was produced, 2 on a fatal error (unreadable catalog, bad config).
"""

import argparse
import logging
import sys
from typing import List, Optional

from .catalog import load_catalog
from .config import AuditConfig, load_config, merge_overrides
from .diagnostics import Diagnostic, format_diagnostic
from .exceptions import CatalogError, ConfigurationError
from .inventory import Inventory
from .logging_config import get_performance_stats, setup_logging
from .verification import AuditReportGenerator, Reconciler
from .version import load_version

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DIAGNOSTICS = 1
EXIT_FATAL = 2


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(
        prog="romaudit",
        description="ROM Audit - verify ROM set archives against a MAME/Logiqx catalog",
    )
    parser.add_argument("catalog", nargs="?", help="Catalog document (MAME -listxml or Logiqx DAT, optionally zipped)")
    parser.add_argument("roms_dir", nargs="?", help="Directory holding the set archives")
    parser.add_argument("--config", metavar="FILE", help="JSON or YAML configuration file")
    parser.add_argument("--ext", action="append", dest="extensions", metavar="EXT",
                        help="Container extension to audit (repeatable, default: .zip and .7z)")
    parser.add_argument("--verify-sha1", action="store_const", const=True, default=None,
                        help="Also compare SHA1 digests of ROMs whose size and CRC match")
    parser.add_argument("--jobs", type=int, default=None, metavar="N",
                        help="Reconcile sets on N worker threads")
    parser.add_argument("--set", action="append", dest="sets", metavar="NAME",
                        help="Only audit the named set (repeatable)")
    parser.add_argument("--report", metavar="FILE", help="Write a JSON audit report")
    parser.add_argument("--quiet", action="store_true", help="Do not print diagnostic lines")
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")
    parser.add_argument("--log-dir", default=None, help="Directory for log files (default: logs)")
    parser.add_argument("--log-json", action="store_const", const=True, default=None,
                        help="Structured JSON log output")
    parser.add_argument("--no-log-file", action="store_const", const=False, default=None,
                        dest="file_logging", help="Disable log files")
    parser.add_argument("--version", action="store_true", help="Show version information")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AuditConfig:
    config = load_config(args.config)
    return merge_overrides(config, {
        "catalog_path": args.catalog,
        "roms_dir": args.roms_dir,
        "extensions": args.extensions,
        "verify_sha1": args.verify_sha1,
        "workers": args.jobs,
        "sets": args.sets,
        "report_path": args.report,
        "logging.level": args.log_level,
        "logging.log_dir": args.log_dir,
        "logging.json_output": args.log_json,
        "logging.file_logging": args.file_logging,
    })


def run_audit(config: AuditConfig, *, quiet: bool = False) -> int:
    """Run one audit with an already validated config."""
    if not config.catalog_path or not config.roms_dir:
        raise ConfigurationError("Both a catalog and a ROM directory are required")

    catalog = load_catalog(config.catalog_path)
    inventory = Inventory.build(config.roms_dir, extensions=config.extensions)

    def _emit(diagnostic: Diagnostic) -> None:
        if not quiet:
            print(f"invalid: {format_diagnostic(diagnostic)}", flush=True)

    only = config.sets or None
    reconciler = Reconciler(catalog, inventory, verify_digests=config.verify_sha1)
    generator = AuditReportGenerator(include_diagnostics=config.report_diagnostics)
    report = generator.generate(
        reconciler.reconcile_all(workers=config.workers, only=only),
        sets_total=len([name for name in only if name in catalog]) if only else len(catalog),
        archives_total=len(inventory),
        archives_unreadable=sum(1 for a in inventory if not a.is_readable),
        catalog_path=str(config.catalog_path),
        roms_dir=str(config.roms_dir),
        on_diagnostic=_emit,
    )

    if config.report_path:
        try:
            report.save(config.report_path)
        except OSError as exc:
            raise ConfigurationError(f"Cannot write report: {exc}", file_path=str(config.report_path)) from exc
        logger.info("Report written to %s", config.report_path)

    logger.info("Audit finished: %d sets, %d clean, %d with issues, %d catalog issues",
                report.sets_total, report.sets_clean, report.sets_with_issues, report.integrity_issues)
    logger.debug("Phase timings: %s", get_performance_stats())
    return EXIT_OK if report.is_clean else EXIT_DIAGNOSTICS


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)

    if args.version:
        print(f"ROM Audit v{load_version()}")
        return EXIT_OK

    try:
        config = build_config(args)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FATAL

    setup_logging(
        log_level=config.logging.level,
        log_dir=config.logging.log_dir,
        enable_file_logging=config.logging.file_logging,
        max_log_size=config.logging.max_log_size,
        backup_count=config.logging.backup_count,
        structured_json=config.logging.json_output or None,
    )

    try:
        return run_audit(config, quiet=args.quiet)
    except (CatalogError, ConfigurationError) as exc:
        logger.error("%s", exc)
        logger.debug("Error details: %s", exc.to_dict())
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FATAL


if __name__ == "__main__":
    raise SystemExit(main())
