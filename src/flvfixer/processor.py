"""
Per-file repair workflow.

FlvProcessor owns the read handle of one input file and runs the two
passes over it: detection (scan, segment, find jumps) and writing. All
jump tables are final before the first output byte is written.
"""

import os

import pandas as pd

from .flv_scanner import FLV_HEADER_LENGTH, read_header, scan_tags
from .jump_detector import (
    JUMP_THRESHOLD,
    MINIMAL_TAGS_IN_SEGMENT,
    detect_jumps,
    split_segments,
)
from .rewriter import iter_corrected, output_path, write_segment


class FlvProcessor:
    """
    Detects and repairs timestamp problems in one FLV recording.

    Usage:
        with FlvProcessor("recording.flv") as processor:
            if processor.detect_problem():
                print(processor.describe_problem())
                processor.write_files()
    """

    def __init__(self, input_path, min_tags=MINIMAL_TAGS_IN_SEGMENT, threshold=JUMP_THRESHOLD):
        if not os.path.isfile(input_path):
            raise FileNotFoundError(f"source file does not exist: {input_path}")

        self.input_path = input_path
        self.min_tags = min_tags
        self.threshold = threshold
        self.tags = []
        self.segments = []
        self.detected = False

        self.input = open(input_path, "rb")
        try:
            read_header(self.input)
        except Exception:
            self.input.close()
            raise

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        self.input.close()

    def detect_problem(self):
        """
        Run the detection pass.

        Returns:
            bool: True if the file holds several recordings or any segment
            has timestamp jumps.
        """
        self.input.seek(FLV_HEADER_LENGTH)
        self.tags = scan_tags(self.input)
        self.segments = split_segments(self.tags)
        self.detected = True

        have_problem = len(self.segments) > 1
        for segment in self.segments:
            if detect_jumps(segment, self.min_tags, self.threshold):
                have_problem = True
        return have_problem

    def _require_detection(self):
        if not self.detected:
            raise RuntimeError("detect_problem() must be called first")

    def describe_problem(self):
        """Human-readable summary of the output files and their jump tables."""
        self._require_detection()

        lines = [f"Will write {len(self.segments)} FLV file(s)"]
        lines.append(f"{'':5} {'Index':>5} {'Est. size':>15} {'Start':>12}")
        for segment in self.segments:
            size_mib = (segment.end_position - segment.start_position) / 1048576
            lines.append(f"{'=>':<5} {segment.index:>5} {size_mib:>12.2f}MiB {segment.start_position:>12}")
            if segment.jump_table:
                lines.append(f"{'':5} {'Offset (ms)':<11}  {'Position':<12}")
                for position, offset in segment.jump_table.items():
                    lines.append(f"{'====>':<5} {offset:>11}  {position:>12}")

        stem, ext = os.path.splitext(os.path.basename(self.input_path))
        lines.append("")
        lines.append(f"Output files are named {stem}_fixed_<index>{ext}")
        return "\n".join(lines)

    def output_paths(self, output_dir=None):
        self._require_detection()
        return [output_path(self.input_path, segment.index, output_dir) for segment in self.segments]

    def write_files(self, output_dir=None):
        """
        Run the writing pass: one repaired file per segment.

        Args:
            output_dir (str): Directory for the outputs (default: next to the input).

        Returns:
            list[str]: Paths of the written files.
        """
        self._require_detection()
        if output_dir is not None:
            os.makedirs(output_dir, exist_ok=True)

        written = []
        for segment, path in zip(self.segments, self.output_paths(output_dir)):
            last_timestamp = write_segment(self.input, segment, path)
            print(f"  Wrote {path} (duration {last_timestamp / 1000:.2f} s)")
            written.append(path)
        return written

    def to_dataframe(self):
        """
        Tag index of the file as a DataFrame, one row per tag.

        Returns:
            pandas.DataFrame: Columns Segment, Index, Type, Flags,
            Payload Size (bytes), Position, Timestamp (ms),
            Corrected Timestamp (ms), Jump (ms) and Jump Entry (True where
            the jump table has an entry, even one whose offset is 0).
        """
        self._require_detection()

        rows = []
        for segment in self.segments:
            corrected = {tag.position: timestamp for tag, timestamp in iter_corrected(segment)}
            for i, tag in enumerate(segment.tags):
                rows.append({
                    'Segment': segment.index,
                    'Index': i,
                    'Type': tag.letter,
                    'Flags': tag.flag_marks,
                    'Payload Size (bytes)': tag.payload_size,
                    'Position': tag.position,
                    'Timestamp (ms)': tag.timestamp,
                    'Corrected Timestamp (ms)': corrected.get(tag.position),
                    'Jump (ms)': segment.jump_table.get(tag.position, 0),
                    'Jump Entry': tag.position in segment.jump_table,
                })
        return pd.DataFrame(rows)

    def export_csv(self, path):
        """Write the tag index to ``path`` as CSV."""
        self.to_dataframe().to_csv(path, index=False)
        print(f"Tag index saved to {path}")
        return path
