#!/usr/bin/env python3
"""Main Entry Point and CLI Integration.

This module provides the command-line interface for the workspace cycle
checker. It loads configuration, scans the workspace roots for package
manifests, finds dependency cycles, and writes them as a graph description.
"""

import argparse
import sys
from pathlib import Path

import structlog

from workspace_cycles.analysis import analyze_records
from workspace_cycles.config import CycleCheckConfig, load_config
from workspace_cycles.graph.package_graph import MissingPackageError
from workspace_cycles.graph.report import CycleReport
from workspace_cycles.log_config import bind_context, clear_context, configure_logging
from workspace_cycles.render.emitter import SUPPORTED_FORMATS, CycleEmitter
from workspace_cycles.workspace.loader import WorkspaceLoader, WorkspaceLoadError

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_CYCLES_FOUND = 2


def apply_cli_overrides(config: CycleCheckConfig, args: argparse.Namespace) -> CycleCheckConfig:
    """Apply command-line flags on top of file and environment configuration.

    Args:
        config: Configuration loaded from file or defaults
        args: Parsed command-line arguments

    Returns:
        Updated configuration (validated copy)
    """
    updates: dict = {"scan": {}, "detection": {}, "output": {}}

    if args.roots:
        updates["scan"]["roots"] = [Path(root) for root in args.roots]
    if args.manifest_name:
        updates["scan"]["manifest_name"] = args.manifest_name
    if args.include_build:
        updates["scan"]["include_build_dependencies"] = True
    if args.no_trim:
        updates["detection"]["trim_to_loop"] = False
    if args.format:
        updates["output"]["format"] = args.format
    if args.min_cycle_size is not None:
        updates["output"]["min_cycle_size"] = args.min_cycle_size

    data = config.model_dump()
    for section, values in updates.items():
        data[section].update(values)
    if args.log_level:
        data["logging_level"] = args.log_level
    if args.json_logs:
        data["json_logs"] = True

    return CycleCheckConfig(**data)


def write_output(text: str, output: str | None) -> None:
    """Write rendered text to a file, or stdout when no file is given."""
    if output:
        output_path = Path(output)
        output_path.write_text(text + "\n", encoding="utf-8")
        logger.info("output_written", path=str(output_path), bytes=len(text) + 1)
    else:
        sys.stdout.write(text + "\n")


def run(args: argparse.Namespace) -> int:
    """Run one check of the workspace.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for load failures, 2 for cycles with
        --fail-on-cycles)
    """
    # Bootstrap logging so configuration loading is visible
    configure_logging(args.log_level or "WARNING", json_logs=args.json_logs)

    try:
        config = apply_cli_overrides(load_config(args.config), args)
    except (FileNotFoundError, ValueError) as e:
        logger.exception("configuration_error", error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_LOAD_FAILED

    configure_logging(config.logging_level, json_logs=config.json_logs)

    for warning in config.validate_config():
        logger.warning("configuration_warning", message=warning)

    bind_context(roots=[str(root) for root in config.scan.roots])
    try:
        loader = WorkspaceLoader(
            config.scan.manifest_name,
            include_build_dependencies=config.scan.include_build_dependencies,
        )
        records = loader.load(config.scan.roots)
        report: CycleReport = analyze_records(records, trim_to_loop=config.detection.trim_to_loop)
    except WorkspaceLoadError as e:
        logger.exception("workspace_load_failed", path=str(e.path), error=e.message)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_LOAD_FAILED
    except MissingPackageError:
        logger.exception("internal_consistency_fault")
        raise
    finally:
        clear_context()

    emitter = CycleEmitter(
        min_cycle_size=config.output.min_cycle_size,
        graph_name=config.output.graph_name,
    )
    write_output(emitter.render(report.cycles, output_format=config.output.format), args.output)

    if args.summary:
        print(report.summary(), file=sys.stderr)

    if args.fail_on_cycles and emitter.select(report.cycles):
        logger.warning("failing_on_cycles", cycle_count=len(emitter.select(report.cycles)))
        return EXIT_CYCLES_FOUND

    return EXIT_OK


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Workspace Cycles - find circular dependencies between workspace packages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan the default roots (app/ and crate/) and print DOT
  workspace-cycles

  # Scan specific roots and render with Graphviz
  workspace-cycles libs tools | dot -Tsvg > cycles.svg

  # Mermaid output, including self-dependencies
  workspace-cycles libs --format mermaid --min-cycle-size 1

  # Use in CI: non-zero exit when any cycle exists
  workspace-cycles libs --fail-on-cycles --summary
        """,
    )

    parser.add_argument(
        "roots",
        nargs="*",
        help="Workspace root directories (default: app crate, or scan.roots from config)",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="Path to configuration YAML file (default: workspace-cycles.yaml if present)",
    )

    parser.add_argument(
        "-f",
        "--format",
        type=str.lower,
        choices=SUPPORTED_FORMATS,
        default=None,
        help="Output format (default: dot)",
    )

    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write the graph to this file instead of stdout",
    )

    parser.add_argument(
        "--manifest-name",
        type=str,
        default=None,
        help="Manifest file name inside each package directory (default: Cargo.toml)",
    )

    parser.add_argument(
        "--min-cycle-size",
        type=int,
        default=None,
        help="Only draw cycles with at least this many packages (default: 2)",
    )

    parser.add_argument(
        "--include-build",
        action="store_true",
        help="Also follow build dependencies",
    )

    parser.add_argument(
        "--no-trim",
        action="store_true",
        help="Record the whole walk path for each cycle instead of just the loop",
    )

    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a text summary of the cycles to stderr",
    )

    parser.add_argument(
        "--fail-on-cycles",
        action="store_true",
        help="Exit with status 2 when any drawn cycle is found",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (INFO level)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug output (DEBUG level)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default: WARNING)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit log lines as JSON",
    )

    args = parser.parse_args(argv)

    # Handle verbose/debug flags
    if args.debug:
        args.log_level = "DEBUG"
    elif args.verbose:
        args.log_level = "INFO"

    return args


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the cycle checker.

    This function parses arguments, runs the check, and exits with the
    appropriate code.
    """
    args = parse_args(argv)

    try:
        sys.exit(run(args))
    except KeyboardInterrupt:
        sys.exit(EXIT_LOAD_FAILED)


if __name__ == "__main__":
    main()
