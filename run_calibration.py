#!/usr/bin/env python3
"""
run_calibration.py — Run the verdict calibration benchmark.

Usage:
    python run_calibration.py                      # Full run
    python run_calibration.py --corpus-dir path/    # Custom corpus location
    python run_calibration.py --json                # Output JSON only (for CI)
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from calibration.benchmark import (
    ACCURACY_TARGET,
    format_report,
    run_benchmark,
    save_report,
    to_json,
)
from calibration.corpus_parser import parse_all_corpora


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="VerifyIt Calibration Runner")
    parser.add_argument(
        "--corpus-dir",
        default="calibration/corpus",
        help="Path to corpus directory (default: calibration/corpus)",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Also write text and JSON reports to this directory",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON only (for CI/automation)",
    )
    args = parser.parse_args(argv)

    corpus_dir = Path(args.corpus_dir)
    if not corpus_dir.exists():
        print(f"Error: Corpus directory not found: {corpus_dir}")
        return 1

    samples = parse_all_corpora(corpus_dir)
    if not samples:
        print(f"Error: No samples found in {corpus_dir}")
        return 1

    result = run_benchmark(corpus_dir=corpus_dir)

    if args.json:
        print(json.dumps(to_json(result), indent=2))
    else:
        print(f"Loaded {len(samples)} samples from {corpus_dir}")
        print(format_report(result))

    if args.output_dir:
        report_path, json_path = save_report(result, args.output_dir)
        if not args.json:
            print(f"\nReport saved to: {report_path}")
            print(f"JSON saved to:   {json_path}")

    if result.accuracy < ACCURACY_TARGET:
        if not args.json:
            print(f"\n⚠️  Verdict accuracy below {ACCURACY_TARGET:.0%} — calibration failing")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
