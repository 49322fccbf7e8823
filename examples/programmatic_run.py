#!/usr/bin/env python3
"""
Programmatic Run Example

Runs the example test files through the Python API instead of the CLI and
prints the JSON export of the results.

Usage:
    python examples/programmatic_run.py
"""

import asyncio
import json
from pathlib import Path

from dlcheck import TestRunner, load_config
from dlcheck.cli import discover_test_files
from dlcheck.runner.reporter import ConsoleReporter


async def main():
    examples_dir = Path(__file__).parent
    config = load_config(examples_dir / "dlcheck.yaml")

    runner = TestRunner(config, reporter=ConsoleReporter(verbose=True))
    await runner.run(discover_test_files(examples_dir))

    result = runner.get_results()
    print(json.dumps(result.to_export_dict()["stats"], indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
