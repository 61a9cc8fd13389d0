#!/usr/bin/env python3
# Copyright 2026 SpecML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run the SpecML CI checks locally: format, lint, type check, tests, sample compile, and build."""

import argparse
import subprocess
import sys
import time
from pathlib import Path

from yachalk import chalk

# ###############
# Public Interface
# ###############

SAMPLE_PROJECT = "tests/data/positive/order_api"

STEPS: dict[str, list[str]] = {
    "format": ["uv", "run", "ruff", "format", "--check", "src/", "tests/", "tools/"],
    "lint": ["uv", "run", "ruff", "check", "src/", "tests/", "tools/"],
    "types": ["uv", "run", "ty", "check", "src/"],
    "tests": ["uv", "run", "pytest", "--cov=specml", "--cov-report=term-missing"],
    "sample": ["uv", "run", "specml", "check", SAMPLE_PROJECT, "--warnings-as-errors"],
    "build": ["uv", "build"],
}


def main() -> int:
    """Run the selected CI steps and print a summary."""
    parser = argparse.ArgumentParser(description="Run SpecML CI checks.")
    parser.add_argument(
        "steps",
        nargs="*",
        help=f"Steps to run (default: all of {', '.join(STEPS)})",
    )
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first failing step")
    args = parser.parse_args()

    selected = args.steps or list(STEPS)
    unknown = [s for s in selected if s not in STEPS]
    if unknown:
        parser.error(f"unknown step(s): {', '.join(unknown)}")
    results: list[tuple[str, bool, float]] = []
    for name in selected:
        _banner(name)
        start = time.monotonic()
        proc = subprocess.run(STEPS[name], cwd=_repo_root())
        passed = proc.returncode == 0
        results.append((name, passed, time.monotonic() - start))
        if not passed and args.fail_fast:
            break

    _banner("Summary")
    for name, passed, elapsed in results:
        colour = chalk.green if passed else chalk.red
        print(colour(f"  {'PASS' if passed else 'FAIL'}  {name} ({elapsed:.1f}s)"))
    print()
    return 0 if all(passed for _, passed, _ in results) else 1


# ################
# Implementation
# ################


def _banner(title: str) -> None:
    sep = chalk.blue("=" * 60)
    print(f"\n{sep}\n{chalk.blue(title)}\n{sep}")


def _repo_root() -> Path:
    return Path(__file__).resolve().parent.parent


if __name__ == "__main__":
    sys.exit(main())
