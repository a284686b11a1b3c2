#!/usr/bin/env python3
"""
Test Runner Script for La Tostadora POS
=======================================

Usage:
    python run_tests.py                    # Run all tests
    python run_tests.py --unit             # Run unit tests only
    python run_tests.py --integration      # Run integration tests only
    python run_tests.py --coverage         # Run with coverage report
    python run_tests.py --module store     # Run specific module tests
    python run_tests.py --verbose          # Verbose output
"""

import argparse
import subprocess
import sys
import os


def get_test_command(args):
    """Build the pytest command based on arguments."""
    cmd = [sys.executable, '-m', 'pytest']

    # Test selection
    if args.unit:
        cmd.extend(['-m', 'not (integration or api)'])
    elif args.integration:
        cmd.extend(['-m', 'integration'])
    elif args.api:
        cmd.extend(['-m', 'api'])

    # Specific module
    if args.module:
        cmd.append(f'tests/test_{args.module}.py')

    # Coverage
    if args.coverage:
        cmd.extend([
            '--cov=tostadora',
            '--cov-report=term-missing',
            '--cov-report=html:coverage_report',
            '--cov-fail-under=70'
        ])

    # Verbosity
    if args.verbose:
        cmd.append('-vv')
    else:
        cmd.append('-v')

    # Stop on first failure
    if args.fail_fast:
        cmd.append('-x')

    # Capture output
    if args.no_capture:
        cmd.append('-s')

    # Specific test
    if args.test:
        cmd.extend(['-k', args.test])

    return cmd


def run_tests(cmd):
    """Execute the test command."""
    print("=" * 70)
    print("LA TOSTADORA POS - TEST RUNNER")
    print("=" * 70)
    print(f"Command: {' '.join(cmd)}")
    print("=" * 70)
    print()

    result = subprocess.run(cmd, cwd=os.path.dirname(os.path.abspath(__file__)))

    print()
    print("=" * 70)
    if result.returncode == 0:
        print("ALL TESTS PASSED!")
    else:
        print(f"TESTS FAILED (exit code: {result.returncode})")
    print("=" * 70)

    return result.returncode


def main():
    parser = argparse.ArgumentParser(
        description='Run tests for La Tostadora POS',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                         Run all tests
  %(prog)s --unit                  Run unit tests only
  %(prog)s --coverage              Run with coverage report
  %(prog)s --module routes         Run route tests only
  %(prog)s --test "test_checkout"  Run tests matching pattern
        """
    )

    # Test type selection
    test_type = parser.add_mutually_exclusive_group()
    test_type.add_argument('--unit', action='store_true', help='Run unit tests only')
    test_type.add_argument('--integration', action='store_true', help='Run integration tests only')
    test_type.add_argument('--api', action='store_true', help='Run API endpoint tests only')

    parser.add_argument('--module', '-m', type=str,
                        help='Run specific module (helpers, domain, store, metrics, reports, services, routes)')
    parser.add_argument('--test', '-t', type=str, help='Run tests matching pattern')

    # Output options
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    parser.add_argument('--coverage', '-c', action='store_true', help='Generate coverage report')
    parser.add_argument('--no-capture', action='store_true', help='Don\'t capture stdout/stderr')
    parser.add_argument('--fail-fast', '-x', action='store_true', help='Stop on first failure')

    args = parser.parse_args()
    sys.exit(run_tests(get_test_command(args)))


if __name__ == '__main__':
    main()
