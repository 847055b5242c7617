#!/usr/bin/env python3
"""
Basic example of using flvfixer to repair one FLV recording.

This example demonstrates:
- Problem detection
- Writing repaired files
- Chart generation
"""

import os
import sys

# Add the src directory to the path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from flvfixer import FlvProcessor, FlvFixerError, generate_timestamp_chart


def main():
    """Run a basic repair example."""
    # Configuration
    input_file = sys.argv[1] if len(sys.argv) > 1 else "recording.flv"  # Replace with your recording
    output_dir = "./output"

    os.makedirs(output_dir, exist_ok=True)

    print(f"Checking {input_file}")
    print(f"Output directory: {output_dir}")
    print("-" * 50)

    try:
        with FlvProcessor(input_file) as processor:
            if not processor.detect_problem():
                print("No problems detected.")
                return 0

            print(processor.describe_problem())

            prefix = os.path.splitext(os.path.basename(input_file))[0]
            generate_timestamp_chart(output_dir, processor.to_dataframe(), prefix)

            written = processor.write_files(output_dir)
            print(f"Repaired {len(written)} file(s)")

    except (FlvFixerError, OSError) as e:
        print(f"Error during repair: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
