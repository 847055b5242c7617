"""
Tests for the tag index export, the timestamp chart and output verification.
"""

import os
import sys
from fractions import Fraction

import matplotlib
matplotlib.use("Agg")

import pandas as pd
from matplotlib.axes import Axes

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from flv_samples import audio, metadata, video, video_run, write_flv
from flvfixer import output_verifier
from flvfixer.chart_generator import generate_timestamp_chart
from flvfixer.processor import FlvProcessor


def _detected(path, tags):
    processor = FlvProcessor(write_flv(path, tags))
    processor.detect_problem()
    return processor


def test_dataframe_has_one_row_per_tag(tmp_path):
    tags = [metadata()] + video_run(0, 2100) + video_run(100000, 10) + [metadata(), audio(0), video(0, keyframe=True)]
    with _detected(tmp_path / "df.flv", tags) as processor:
        data = processor.to_dataframe()

    assert len(data) == len(tags)
    assert list(data.columns) == [
        'Segment', 'Index', 'Type', 'Flags', 'Payload Size (bytes)', 'Position',
        'Timestamp (ms)', 'Corrected Timestamp (ms)', 'Jump (ms)', 'Jump Entry']
    assert list(data['Segment'].unique()) == [0, 1]
    assert data['Type'].tolist()[-3:] == ['S', 'A', 'V']
    assert data['Flags'].iloc[-1] == 'K---'

    jumps = data[data['Jump (ms)'] != 0]
    assert len(jumps) == 1
    assert jumps['Index'].iloc[0] == 2101

    segment = data[(data['Segment'] == 0) & (data['Type'] == 'V')]
    assert segment['Corrected Timestamp (ms)'].diff().dropna().eq(33).all()


def test_export_csv(tmp_path):
    with _detected(tmp_path / "csv.flv", [metadata()] + video_run(0, 20)) as processor:
        path = processor.export_csv(str(tmp_path / "csv_tags.csv"))

    data = pd.read_csv(path)
    assert len(data) == 21
    assert data['Timestamp (ms)'].iloc[-1] == 19 * 33


def test_generate_timestamp_chart(tmp_path):
    tags = [metadata()] + video_run(0, 2100) + video_run(100000, 10) + [metadata()] + video_run(0, 10)
    with _detected(tmp_path / "chart.flv", tags) as processor:
        data = processor.to_dataframe()

    chart_path = generate_timestamp_chart(str(tmp_path), data, "chart")

    assert chart_path == os.path.join(str(tmp_path), "chart_timestamps.png")
    assert os.path.getsize(chart_path) > 0


def test_chart_marks_jumps_with_zero_offset(tmp_path, monkeypatch, capsys):
    """A jump whose offset could not be computed is still marked on the chart."""
    tags = [metadata()] + video_run(0, 2100) + [audio(500000), video(500000)] + video_run(500033, 10)
    with _detected(tmp_path / "zero.flv", tags) as processor:
        data = processor.to_dataframe()
    assert "Warning" in capsys.readouterr().out

    entries = data[data['Jump Entry']]
    assert entries['Index'].tolist() == [2101]
    assert entries['Jump (ms)'].tolist() == [0]

    marked = []
    original_axvline = Axes.axvline

    def recording_axvline(self, x=0, **kwargs):
        marked.append(x)
        return original_axvline(self, x=x, **kwargs)

    monkeypatch.setattr(Axes, "axvline", recording_axvline)
    generate_timestamp_chart(str(tmp_path), data, "zero")

    assert marked == [2101, 2101]


class _FakeStream:
    def __init__(self, index, kind):
        self.index = index
        self.type = kind
        self.time_base = Fraction(1, 1000)


class _FakePacket:
    def __init__(self, stream, dts):
        self.stream = stream
        self.dts = dts


class _FakeContainer:
    def __init__(self, packets):
        self.packets = packets
        self.closed = False

    def demux(self):
        return iter(self.packets)

    def close(self):
        self.closed = True


def test_verify_output_counts_regressions(monkeypatch):
    video_stream, audio_stream = _FakeStream(0, 'video'), _FakeStream(1, 'audio')
    container = _FakeContainer([
        _FakePacket(video_stream, 0),
        _FakePacket(audio_stream, 0),
        _FakePacket(video_stream, 40),
        _FakePacket(audio_stream, 23),
        _FakePacket(video_stream, 10),
        _FakePacket(video_stream, None),
        _FakePacket(audio_stream, 46),
    ])
    monkeypatch.setattr(output_verifier.av, "open", lambda path: container)

    results = output_verifier.verify_output("fixed.flv")

    assert container.closed
    assert results['video'] == {'packets': 3, 'non_monotonic': 1, 'last_dts_ms': 10.0}
    assert results['audio'] == {'packets': 3, 'non_monotonic': 0, 'last_dts_ms': 46.0}

    lines = output_verifier.format_verification("fixed.flv", results)
    assert lines[0].startswith("✗")
    assert "    video: 3 packets, 1 non-monotonic timestamps" in lines
    assert "    audio: 3 packets, 0 non-monotonic timestamps" in lines


def test_format_verification_without_packets():
    assert output_verifier.format_verification("x.flv", {})[0].startswith("✗")
