# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the SpecML command-line interface."""

import argparse
import json
import logging
import sys
from pathlib import Path

from yachalk import chalk

from specml.compiler.build import CompileResult, compile_directory
from specml.compiler.ir import write_ir
from specml.errors import CompilationError, CompilerWarning, SpecError
from specml.workspace.config import (
    CONFIG_FILE_NAME,
    WorkspaceConfig,
    WorkspaceConfigError,
    dump_workspace_config,
    find_workspace_config,
)

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the SpecML CLI."""
    parser = argparse.ArgumentParser(
        prog="specml",
        description="SpecML: schema compiler for data shapes and HTTP endpoints",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # Options shared by check and compile.
    build_options = argparse.ArgumentParser(add_help=False)
    build_options.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Root directory of the spec files (default: current directory)",
    )
    build_options.add_argument(
        "--jobs",
        type=int,
        default=None,
        help="Number of parser worker threads (default: from config, else 1)",
    )
    build_options.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Diagnostic output format (default: text)",
    )
    build_options.add_argument(
        "--warnings-as-errors",
        action="store_true",
        default=None,
        help="Fail when any warning is reported",
    )
    build_options.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log compiler progress to stderr",
    )

    # init subcommand
    init_parser = subparsers.add_parser(
        "init",
        help="Create a default configuration file",
        description=f"Write a default {CONFIG_FILE_NAME} into a directory.",
    )
    init_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory to initialize (default: current directory)",
    )

    # check subcommand
    subparsers.add_parser(
        "check",
        parents=[build_options],
        help="Compile the spec files without writing output",
        description="Parse, compose, and validate every spec file below a directory.",
    )

    # compile subcommand
    compile_parser = subparsers.add_parser(
        "compile",
        parents=[build_options],
        help="Compile the spec files and write the IR document",
        description="Compile every spec file below a directory into one IR document.",
    )
    compile_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Path of the IR document (default: from config, relative to the directory)",
    )

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "init":
        return _cmd_init(args)
    if args.command == "check":
        return _cmd_check(args)
    if args.command == "compile":
        return _cmd_compile(args)
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    """Handle the init subcommand."""
    directory = Path(args.directory).resolve()

    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return 1

    config_file = directory / CONFIG_FILE_NAME
    if config_file.exists():
        print(f"Error: configuration already exists at '{config_file}'.", file=sys.stderr)
        return 1

    content = "# SpecML configuration\n" + dump_workspace_config(WorkspaceConfig())
    config_file.write_text(content, encoding="utf-8")
    print(f"Initialized SpecML project at '{config_file}'.")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    loaded = _load(args)
    if loaded is None:
        return 1
    directory, config = loaded
    result = _run(directory, config, args.format)
    if result is None:
        return 1
    if args.format == "text":
        print(chalk.green(f"Checked {len(result.order)} file(s). No issues found."))
    return 0


def _cmd_compile(args: argparse.Namespace) -> int:
    """Handle the compile subcommand."""
    loaded = _load(args)
    if loaded is None:
        return 1
    directory, config = loaded
    result = _run(directory, config, args.format)
    if result is None:
        return 1

    output = Path(args.output) if args.output else directory / config.output
    try:
        write_ir(result.graph, output)
    except OSError as exc:
        print(f"Error: cannot write '{output}': {exc}", file=sys.stderr)
        return 1
    if args.format == "text":
        print(chalk.green(f"Compiled {len(result.order)} file(s) to '{output}'."))
    return 0


def _load(args: argparse.Namespace) -> tuple[Path, WorkspaceConfig] | None:
    """Resolve the directory and configuration, applying command-line overrides."""
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)

    directory = Path(args.directory).resolve()
    if not directory.is_dir():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return None

    try:
        config = find_workspace_config(directory)
    except WorkspaceConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None

    if args.jobs is not None:
        if args.jobs < 1:
            print("Error: --jobs must be a positive integer.", file=sys.stderr)
            return None
        config.jobs = args.jobs
    if args.warnings_as_errors is not None:
        config.warnings_as_errors = args.warnings_as_errors
    return directory, config


def _run(directory: Path, config: WorkspaceConfig, output_format: str) -> CompileResult | None:
    """Compile *directory* and report diagnostics; return None on failure."""
    try:
        result = compile_directory(directory, config)
    except CompilationError as exc:
        _report(exc.errors, exc.warnings, output_format)
        if output_format == "text":
            if exc.errors:
                summary = f"Compilation failed with {len(exc.errors)} error(s)"
            else:
                summary = f"Compilation failed: {len(exc.warnings)} warning(s) treated as errors"
            print(chalk.red(summary + "."), file=sys.stderr)
        return None

    _report([], result.warnings, output_format)
    return result


def _report(errors: list[SpecError], warnings: list[CompilerWarning], output_format: str) -> None:
    if output_format == "json":
        document = {
            "errors": [e.to_dict() for e in errors],
            "warnings": [w.to_dict() for w in warnings],
        }
        print(json.dumps(document, indent=2))
        return
    for warning in warnings:
        print(chalk.yellow(warning.format()))
    for error in errors:
        print(chalk.red(error.format()), file=sys.stderr)
