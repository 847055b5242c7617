#!/usr/bin/env python3
"""
Batch repair example for a directory of FLV recordings.

This example demonstrates:
- Detect-only scanning of many files
- Batch processing
- Results summary
"""

import os
import sys

# Add the src directory to the path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from flvfixer import FlvProcessor


def scan_directory(directory, write=False):
    """
    Check every FLV file in a directory.

    Args:
        directory (str): Directory holding the recordings
        write (bool): Write repaired files for problematic recordings

    Returns:
        dict: Per-file result
    """
    results = {}
    files = sorted(f for f in os.listdir(directory) if f.lower().endswith(".flv") and "_fixed_" not in f)

    for i, name in enumerate(files, 1):
        path = os.path.join(directory, name)
        print(f"\n{'='*60}")
        print(f"Checking file {i}/{len(files)}: {name}")
        print(f"{'='*60}")

        try:
            with FlvProcessor(path) as processor:
                have_problem = processor.detect_problem()
                jumps = sum(len(s.jump_table) for s in processor.segments)
                results[name] = {
                    'status': 'problem' if have_problem else 'clean',
                    'segments': len(processor.segments),
                    'jumps': jumps,
                    'tags': len(processor.tags),
                }
                if have_problem and write:
                    results[name]['written'] = processor.write_files()

            print(f"✓ {len(processor.tags)} tags, {len(processor.segments)} segment(s), {jumps} jump(s)")

        except Exception as e:
            results[name] = {
                'status': 'error',
                'error': str(e)
            }
            print(f"✗ Error: {e}")

    return results


def print_summary(results):
    """Print a summary of batch results."""
    print(f"\n{'='*60}")
    print("BATCH SUMMARY")
    print(f"{'='*60}")

    problems = sum(1 for r in results.values() if r['status'] == 'problem')
    errors = sum(1 for r in results.values() if r['status'] == 'error')

    print(f"Total files checked: {len(results)}")
    print(f"With problems: {problems}")
    print(f"Failed: {errors}")

    print(f"\nDetailed Results:")
    print("-" * 40)

    for name, result in results.items():
        status_icon = "✗" if result['status'] == 'error' else "✓"
        print(f"{status_icon} {name}")

        if result['status'] == 'error':
            print(f"   Error: {result.get('error', 'Unknown error')}")
        else:
            print(f"   Segments: {result['segments']}, jumps: {result['jumps']}")
            for path in result.get('written', []):
                print(f"   Wrote: {path}")
        print()


def main():
    """Run batch example."""
    directory = sys.argv[1] if len(sys.argv) > 1 else "."
    write = "--write" in sys.argv[2:]

    print("Starting batch check...")
    print(f"Directory: {directory}")
    print(f"Write repaired files: {'yes' if write else 'no'}")

    results = scan_directory(directory, write)
    print_summary(results)

    return 1 if any(r['status'] == 'error' for r in results.values()) else 0


if __name__ == "__main__":
    sys.exit(main())
