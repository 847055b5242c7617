"""
Basic tests for flvfixer package.
"""

import pytest
import sys
import os

# Add src to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import flvfixer
from flvfixer.rewriter import output_path


def test_package_import():
    """Test that the package can be imported."""
    assert flvfixer.__version__ == "0.1.0"
    assert flvfixer.__license__ == "GPL-3.0"


def test_output_file_names():
    """Test naming of repaired output files."""
    # Test basic name
    assert output_path("recording.flv", 0) == "recording_fixed_0.flv"

    # Test path with directories
    result = output_path(os.path.join("videos", "live.flv"), 2)
    assert result == os.path.join("videos", "live_fixed_2.flv")

    # Test name with several dots
    assert output_path("room.2020-05-01.flv", 1) == "room.2020-05-01_fixed_1.flv"

    # Test other extension
    assert output_path("capture.FLV", 0) == "capture_fixed_0.FLV"


def test_module_exports():
    """Test that expected names are exported."""
    assert hasattr(flvfixer, 'FlvProcessor')
    assert hasattr(flvfixer, 'FlvMetadata')
    assert hasattr(flvfixer, 'scan_tags')
    assert hasattr(flvfixer, 'generate_timestamp_chart')
    assert issubclass(flvfixer.FlvFormatError, flvfixer.FlvFixerError)


if __name__ == "__main__":
    pytest.main([__file__])
