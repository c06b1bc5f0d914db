"""
=============================================================================
Result Sheet Analyzer - Command Line Entry Point
=============================================================================

Main script to run the complete workflow on one pasted result sheet:
1. Parse the text (primary format, falling back to the simplified one)
2. Print aggregate analytics and subject statistics
3. Print top performers, search hits and a student comparison
4. Export CSV / Excel / JSON
5. Optionally save the dataset to SQLite

Usage:
    python run_analysis.py INPUT [--name NAME] [--strategy auto|primary|simplified]
                                 [--output DIR] [--db FILE] [--skip-export]
                                 [--top N] [--search QUERY] [--compare ROLL1 ROLL2]
                                 [--verbose]

Examples:
    python run_analysis.py sem4_results.txt
    python run_analysis.py sem4_results.txt --name "BCA Sem 4" --db results.db
    pbpaste | python run_analysis.py - --search SHARMA --skip-export
=============================================================================
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from analytics import calculate_dataset_analytics, compare_students, get_top_performers, search_students
from config import DEFAULT_OUTPUT_DIR, DEFAULT_TOP_PERFORMERS, LOG_FILE_NAME, LOG_FORMAT
from dataset import Dataset, DatasetAnalytics
from dataset_store import DatasetStore
from export_utils import export_analytics_json, export_dataset_json, save_outputs
from extract_results import STRATEGIES, ResultSheetParser
from init_db import init_database

AUTO_STRATEGY = 'auto'


def _setup_logging(output_dir: str, verbose: bool = False):
    """Configure logging to file and console"""
    os.makedirs(output_dir, exist_ok=True)
    log_file = os.path.join(output_dir, LOG_FILE_NAME)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ],
        force=True
    )
    return log_file


def _print_section(title: str):
    print()
    print("-" * 80)
    print(title)
    print("-" * 80)
    print()


def _read_input(path: str) -> str:
    if path == '-':
        return sys.stdin.read()
    with open(path, encoding='utf-8') as f:
        return f.read()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Parse and analyze a pasted university result sheet',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a saved paste with default settings
  python run_analysis.py results.txt

  # Name the dataset and keep it in a database
  python run_analysis.py results.txt --name "BCA Sem 4" --db results.db

  # Read from stdin, search and compare without writing files
  python run_analysis.py - --search SHARMA --compare 2024-1001 2024-1002 --skip-export
        """
    )

    parser.add_argument(
        'input',
        help='Text file with the pasted result sheet ("-" reads stdin)'
    )

    parser.add_argument(
        '--name',
        default=None,
        help='Dataset name (default: date-stamped name)'
    )

    parser.add_argument(
        '--strategy',
        choices=[AUTO_STRATEGY] + list(STRATEGIES),
        default=AUTO_STRATEGY,
        help='Parser to use; auto tries primary, then simplified (default: auto)'
    )

    parser.add_argument(
        '--output',
        default=DEFAULT_OUTPUT_DIR,
        help=f'Output directory for exports and the log (default: {DEFAULT_OUTPUT_DIR})'
    )

    parser.add_argument(
        '--db',
        default=None,
        help='SQLite database file to save the dataset in'
    )

    parser.add_argument(
        '--skip-export',
        action='store_true',
        help='Skip CSV / Excel / JSON export'
    )

    parser.add_argument(
        '--top',
        type=int,
        default=DEFAULT_TOP_PERFORMERS,
        help=f'Number of top performers to list (default: {DEFAULT_TOP_PERFORMERS})'
    )

    parser.add_argument(
        '--search',
        default=None,
        help='List students whose name, roll no or ABC id contains this text'
    )

    parser.add_argument(
        '--compare',
        nargs=2,
        metavar=('ROLL1', 'ROLL2'),
        default=None,
        help='Compare two students by roll number'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log every parsed row'
    )

    return parser


def print_analytics(dataset: Dataset, analytics: DatasetAnalytics):
    print(f"Total students:   {analytics.total_students}")
    print(f"Passed:           {analytics.passed_students}")
    print(f"Failed:           {analytics.failed_students}")
    print(f"Pass rate:        {analytics.pass_rate:.1f}%")
    print(f"Average SGPA:     {analytics.average_sgpa:.2f}")
    if analytics.highest_sgpa.student:
        print(f"Highest SGPA:     {analytics.highest_sgpa.sgpa} ({analytics.highest_sgpa.student.name})")
    if analytics.lowest_sgpa.student:
        print(f"Lowest SGPA:      {analytics.lowest_sgpa.sgpa} ({analytics.lowest_sgpa.student.name})")
    print()
    print("SGPA distribution:")
    for bucket in analytics.sgpa_distribution:
        print(f"  {bucket.range:<12} {bucket.count}")

    _print_section(f"Subject Statistics ({dataset.total_subjects} subjects)")
    for stats in analytics.subject_stats:
        grades = ', '.join(f"{g}: {n}" for g, n in sorted(stats.grade_distribution.items()))
        print(f"{stats.subject_name}")
        print(f"   High: {stats.highest}, Low: {stats.lowest}, Avg: {stats.average:.1f}, "
              f"Pass%: {stats.pass_rate:.1f}%")
        if grades:
            print(f"   Grades: {grades}")


def print_comparison(dataset: Dataset, roll1: str, roll2: str):
    student1 = dataset.find_by_roll_no(roll1)
    student2 = dataset.find_by_roll_no(roll2)

    missing = [roll for roll, s in ((roll1, student1), (roll2, student2)) if s is None]
    if missing:
        print(f"Student not found: {', '.join(missing)}")
        return

    result = compare_students(student1, student2, dataset.subjects)

    print(f"{student1.name} ({roll1})  vs  {student2.name} ({roll2})")
    print()
    for comparison in result.subject_comparisons:
        if comparison.difference is None:
            print(f"  {comparison.subject_name:<40} {comparison.student1_marks} vs {comparison.student2_marks}")
        else:
            print(f"  {comparison.subject_name:<40} {comparison.student1_marks} vs "
                  f"{comparison.student2_marks} ({comparison.difference:+g}, {comparison.winner})")
    print()
    overall = result.overall_comparison
    print(f"Grand total: {overall.grand_total.student1} vs {overall.grand_total.student2} "
          f"-> {overall.grand_total.winner}")
    print(f"SGPA:        {overall.sgpa.student1} vs {overall.sgpa.student2} -> {overall.sgpa.winner}")


def main(argv: Optional[List[str]] = None):
    """Main entry point for result analysis"""
    args = build_parser().parse_args(argv)

    print()
    print("=" * 80)
    print(" " * 25 + "Result Sheet Analyzer")
    print("=" * 80)
    print()

    print("Configuration:")
    print(f"  Input:             {args.input}")
    print(f"  Strategy:          {args.strategy}")
    print(f"  Output directory:  {args.output}")
    print(f"  Database file:     {args.db or '-'}")
    print()

    if args.input != '-' and not os.path.exists(args.input):
        print(f"Error: Input file not found: {args.input}")
        sys.exit(1)

    log_file = _setup_logging(args.output, args.verbose)
    session = None

    try:
        raw_text = _read_input(args.input)

        if args.db:
            session = init_database(args.db)
        store = DatasetStore(db_session=session)

        # Step 1: Parse
        _print_section("Step 1: Parsing Result Sheet")

        if args.strategy == AUTO_STRATEGY:
            result = store.parse_and_add_dataset(raw_text, args.name)
        else:
            result = ResultSheetParser(STRATEGIES[args.strategy]).parse(raw_text, args.name)
            if result.success:
                store.add_dataset(result.dataset)

        if not result.success:
            print()
            print("=" * 80)
            print("PARSE FAILED")
            print("=" * 80)
            print()
            for error in result.errors:
                print(f"  - {error}")
            print()
            print(f"Check the log for details: {log_file}")
            print()
            sys.exit(1)

        dataset = result.dataset
        print(f"✓ Dataset:        {dataset.name}")
        print(f"✓ Parser:         {result.strategy}")
        print(f"✓ Students:       {result.rows_parsed}")
        print(f"✓ Subjects:       {dataset.total_subjects}")
        if result.rows_skipped:
            print(f"⚠ Rows skipped:   {result.rows_skipped}")
            for error in result.errors:
                print(f"  - {error}")

        # Step 2: Analytics
        _print_section("Step 2: Analytics")
        analytics = calculate_dataset_analytics(dataset)
        print_analytics(dataset, analytics)

        # Step 3: Rankings, search and comparison
        _print_section(f"Step 3: Top {args.top} Performers")
        for i, student in enumerate(get_top_performers(dataset.students, args.top), 1):
            print(f"{i}. {student.roll_no or '-'} - {student.name} - {student.remarks} (SGPA: {student.sgpa})")

        if args.search is not None:
            _print_section(f'Search: "{args.search}"')
            matches = search_students(dataset.students, args.search)
            print(f"Showing {len(matches)} of {dataset.total_students} students")
            for student in matches:
                print(f"  {student.roll_no or '-'} - {student.name} (SGPA: {student.sgpa})")

        if args.compare:
            _print_section("Comparison")
            print_comparison(dataset, *args.compare)

        # Step 4: Export
        output_files = []
        if not args.skip_export:
            _print_section("Step 4: Exporting")
            csv_file, excel_file = save_outputs(dataset, args.output, analytics)
            dataset_json = os.path.join(args.output, 'dataset.json')
            analytics_json = os.path.join(args.output, 'analytics.json')
            export_dataset_json(dataset, dataset_json)
            export_analytics_json(analytics, analytics_json)
            output_files = [csv_file, excel_file, dataset_json, analytics_json]

        # Final summary
        print()
        print("=" * 80)
        print("ANALYSIS COMPLETE")
        print("=" * 80)
        print()
        if output_files:
            print("Output files:")
            for path in output_files:
                print(f"  - {path}")
        if session is not None:
            print(f"  - Database:      {os.path.abspath(args.db)}")
        print(f"  - Log file:      {log_file}")
        print()
        print("✓ All done!")
        print()

    except KeyboardInterrupt:
        print()
        print()
        print("=" * 80)
        print("INTERRUPTED BY USER")
        print("=" * 80)
        print()
        sys.exit(0)

    except Exception as e:
        print()
        print()
        print("=" * 80)
        print("ERROR")
        print("=" * 80)
        print()
        print(f"An error occurred: {e}")
        print()

        import traceback
        print("Traceback:")
        traceback.print_exc()
        print()

        sys.exit(1)

    finally:
        if session is not None:
            session.close()


if __name__ == '__main__':
    main()
