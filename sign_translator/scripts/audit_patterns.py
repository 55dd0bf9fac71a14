#!/usr/bin/env python3
"""
Audit a gesture dictionary against the pattern table.

Reports:
  - gestures with no pattern entry (matched through the missing-pattern policy)
  - gestures whose dictionary finger pattern differs from the table
  - table entries naming an unregistered verification predicate

Exits with status 1 when anything is reported.
"""

import argparse
import sys

from sign_translator.config.config_manager import DEFAULT_DICTIONARY_PATH, DEFAULT_PATTERNS_PATH
from sign_translator.detectors.gesture_types import load_gesture_dictionary
from sign_translator.detectors.pattern_library import AuditReport, PatternLibrary


def _fmt(pattern) -> str:
    return "".join('1' if v else '0' for v in pattern)


def print_report(report: AuditReport) -> None:
    if report.missing:
        print(f"⚠ {len(report.missing)} gesture(s) without a pattern entry:")
        for name in report.missing:
            print(f"    {name}")
    if report.disagreements:
        print(f"⚠ {len(report.disagreements)} dictionary/table disagreement(s):")
        for name, dictionary_pattern, table_pattern in report.disagreements:
            print(f"    {name:<12} dictionary {_fmt(dictionary_pattern)}  table {_fmt(table_pattern)}")
    if report.unknown_predicates:
        print(f"⚠ {len(report.unknown_predicates)} unknown verification predicate(s):")
        for name, predicate in report.unknown_predicates:
            print(f"    {name:<12} {predicate}")
    if report.ok:
        print("✓ Pattern table covers the dictionary")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Audit gesture patterns against a gesture dictionary")
    parser.add_argument(
        '--dictionary', type=str, default=str(DEFAULT_DICTIONARY_PATH),
        help='Path to the gesture dictionary JSON'
    )
    parser.add_argument(
        '--patterns', type=str, default=str(DEFAULT_PATTERNS_PATH),
        help='Path to the gesture pattern table JSON'
    )
    args = parser.parse_args(argv)

    gestures = load_gesture_dictionary(args.dictionary)
    library = PatternLibrary.from_file(args.patterns)

    report = library.audit(gestures)
    print_report(report)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
