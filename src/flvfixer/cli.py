#!/usr/bin/env python3
"""
Command-line interface for flvfixer.

This module provides the main entry point for the flvfixer command-line tool.
"""

import argparse
import sys
import os

import av

from . import __version__
from .processor import FlvProcessor
from .chart_generator import generate_timestamp_chart
from .output_verifier import verify_output, format_verification


def create_parser():
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="flvfixer - repair FLV live recordings with broken timestamps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  flvfixer recording.flv
    (detect problems and write recording_fixed_<n>.flv files)
  flvfixer --dry-run *.flv
    (only report what would be done)
  flvfixer -i recording.flv
    (ask before writing output files)
  flvfixer recording.flv --export-csv --chart --verify
    (also export the tag index, draw timestamps and check the outputs)
        """
    )

    parser.add_argument(
        "input",
        nargs="+",
        help="FLV file(s) to repair"
    )

    parser.add_argument(
        "--interactive", "-i",
        action="store_true",
        help="Ask for confirmation before writing output files"
    )

    parser.add_argument(
        "--dry-run", "-d",
        action="store_true",
        help="Only report detected problems, do not write output files"
    )

    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        default=None,
        help="Directory for output files (default: next to each input file)"
    )

    parser.add_argument(
        "--export-csv",
        action="store_true",
        help="Save the tag index of each input as <name>_tags.csv"
    )

    parser.add_argument(
        "--chart",
        action="store_true",
        help="Save a chart of original and corrected timestamps as <name>_timestamps.png"
    )

    parser.add_argument(
        "--verify",
        action="store_true",
        help="Demux written files and check that their timestamps are monotonic"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print tracebacks for failed files"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"flvfixer {__version__}"
    )

    return parser


def confirm(prompt="Write output files? [y]es/[n]o: "):
    """Ask until the answer is yes or no."""
    while True:
        answer = input(prompt).strip().lower()
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False


def process_file(path, args):
    """
    Detect and repair one file according to the CLI options.

    Returns:
        list[str]: Paths of the written files (empty if nothing was written).
    """
    report_dir = args.output_dir or os.path.dirname(os.path.abspath(path))
    prefix = os.path.splitext(os.path.basename(path))[0]

    with FlvProcessor(path) as processor:
        print("Reading file and detecting problems...")
        have_problem = processor.detect_problem()

        if args.export_csv or args.chart:
            os.makedirs(report_dir, exist_ok=True)
        if args.export_csv:
            processor.export_csv(os.path.join(report_dir, f"{prefix}_tags.csv"))
        if args.chart:
            generate_timestamp_chart(report_dir, processor.to_dataframe(), prefix)

        if not have_problem:
            print("No problems detected.")
            return []

        print()
        print(processor.describe_problem())

        if args.dry_run:
            return []
        if args.interactive and not confirm():
            return []

        print("Writing files...")
        written = processor.write_files(args.output_dir)
        print("✓ Done")

    if args.verify:
        for output in written:
            try:
                results = verify_output(output)
            except av.FFmpegError as e:
                print(f"Warning: Could not verify {output}: {e}")
                continue
            for line in format_verification(output, results):
                print(line)

    return written


def main(argv=None):
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    print(f"flvfixer {__version__} - FLV Live Recording Fixer")
    print("=" * 40)

    file_count = len(args.input)
    if file_count > 1:
        print(f"Batch processing {file_count} files.")

    failed = 0
    for path in args.input:
        if file_count > 1:
            print(f"\nReading file: {path}\n")

        try:
            process_file(path, args)
        except KeyboardInterrupt:
            print("\n✗ Interrupted by user.")
            return 1
        except Exception as e:
            print(f"\n✗ Error while processing {path}: {e}")
            if args.debug:
                import traceback
                traceback.print_exc()
            failed += 1

    if failed:
        print(f"\n{failed} of {file_count} file(s) failed.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
