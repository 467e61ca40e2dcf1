"""Command-line interface for stackgate."""

import argparse
import logging
import sys
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from stackgate import __version__
from stackgate.config.settings import AppConfig, load_config
from stackgate.utils.error_handler import EXIT_FAILURE, EXIT_OK, ErrorHandler
from stackgate.utils.errors import StackGateError
from stackgate.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def apply_gate_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Overlay command-line flags on the loaded gate configuration."""
    updates = {}
    if args.interval is not None:
        updates["poll_interval_seconds"] = args.interval
    if args.max_attempts is not None:
        updates["max_attempts"] = args.max_attempts
    if args.timeout is not None:
        updates["timeout_seconds"] = args.timeout
    if args.verify_command is not None:
        updates["verify_command"] = args.verify_command
    if args.skip_verify:
        updates["verify_command"] = ""
    if args.workload_command is not None:
        updates["workload_command"] = args.workload_command
    if args.wait_for_broker:
        updates["wait_for_broker"] = True

    if updates:
        config.gate = config.gate.model_copy(update=updates)
        config.validate_all()
    return config


def cmd_run(config: AppConfig, args: argparse.Namespace) -> int:
    """Handle the run command."""
    from stackgate.services.startup_service import run_startup

    config = apply_gate_overrides(config, args)
    report = run_startup(config)
    return report.exit_code


def cmd_check(config: AppConfig, args: argparse.Namespace) -> int:
    """Handle the check command."""
    from stackgate.services.startup_service import check_dependencies

    include_broker = True if args.broker else None
    return EXIT_OK if check_dependencies(config, include_broker=include_broker) else EXIT_FAILURE


def cmd_export(config: AppConfig, args: argparse.Namespace) -> int:
    """Handle the export command."""
    from stackgate.services.export_service import run_export

    updates = {}
    if args.output_dir:
        updates["output_dir"] = args.output_dir
    if args.formats:
        updates["formats_raw"] = ",".join(args.formats)
    if args.tables:
        updates["tables_raw"] = ",".join(args.tables)
    if updates:
        config.export = config.export.model_copy(update=updates)
        config.validate_all()

    written = run_export(config)
    for path in written:
        print(path)
    return EXIT_OK


def cmd_serve(config: AppConfig, args: argparse.Namespace) -> int:
    """Handle the serve command."""
    import uvicorn

    uvicorn.run(
        "stackgate.main:app",
        host=args.host,
        port=args.port,
        log_level=config.logging.level.lower(),
        access_log=True
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackgate",
        description="Readiness-gated startup and data export for the realtime stack",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run", help="Wait for dependencies, run verification, then the workload"
    )
    run_parser.add_argument("--interval", type=float, help="Seconds between probe attempts")
    run_parser.add_argument("--max-attempts", type=int, help="Give up after this many probes")
    run_parser.add_argument("--timeout", type=float, help="Give up after this many seconds")
    run_parser.add_argument("--verify-command", help="Verification command")
    run_parser.add_argument(
        "--skip-verify", action="store_true", help="Start the workload without verification"
    )
    run_parser.add_argument("--workload-command", help="Main workload command")
    run_parser.add_argument(
        "--wait-for-broker", action="store_true", help="Also wait for the broker"
    )
    run_parser.set_defaults(func=cmd_run)

    check_parser = subparsers.add_parser("check", help="Probe every dependency once")
    check_parser.add_argument("--broker", action="store_true", help="Include the broker")
    check_parser.set_defaults(func=cmd_check)

    export_parser = subparsers.add_parser("export", help="Export database tables to files")
    export_parser.add_argument("--output-dir", help="Directory to write files into")
    export_parser.add_argument(
        "--format", dest="formats", action="append", choices=["csv", "parquet"],
        help="Output format (repeatable)"
    )
    export_parser.add_argument(
        "--table", dest="tables", action="append", help="Table to export (repeatable)"
    )
    export_parser.set_defaults(func=cmd_export)

    serve_parser = subparsers.add_parser("serve", help="Run the health API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    error_handler = ErrorHandler()

    try:
        config = load_config()
    except StackGateError as e:
        setup_logging()
        return error_handler.handle_startup_error("config", e)

    setup_logging(config.logging.level, config.logging.structured)

    try:
        return args.func(config, args)
    except (StackGateError, SQLAlchemyError, OSError) as e:
        return error_handler.handle_startup_error(args.command, e)


if __name__ == "__main__":
    sys.exit(main())
