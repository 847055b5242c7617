"""
Tests for the flvfixer command-line interface.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from flv_samples import metadata, video_run, write_flv
from flvfixer import cli


def _two_recordings(path):
    return write_flv(path, [metadata()] + video_run(0, 5) + [metadata()] + video_run(0, 5))


def test_parser_defaults():
    args = cli.create_parser().parse_args(["a.flv", "b.flv"])
    assert args.input == ["a.flv", "b.flv"]
    assert not args.interactive
    assert not args.dry_run
    assert args.output_dir is None


def test_fix_writes_outputs(tmp_path, capsys):
    source = _two_recordings(tmp_path / "rec.flv")

    assert cli.main([source]) == 0
    assert (tmp_path / "rec_fixed_0.flv").exists()
    assert (tmp_path / "rec_fixed_1.flv").exists()
    assert "Will write 2 FLV file(s)" in capsys.readouterr().out


def test_dry_run_writes_nothing(tmp_path, capsys):
    source = _two_recordings(tmp_path / "rec.flv")

    assert cli.main(["--dry-run", source]) == 0
    assert not (tmp_path / "rec_fixed_0.flv").exists()
    assert "Will write 2 FLV file(s)" in capsys.readouterr().out


def test_clean_file(tmp_path, capsys):
    source = write_flv(tmp_path / "clean.flv", [metadata()] + video_run(0, 50))

    assert cli.main([source]) == 0
    assert "No problems detected." in capsys.readouterr().out
    assert not (tmp_path / "clean_fixed_0.flv").exists()


def test_batch_continues_after_failure(tmp_path, capsys):
    bad = tmp_path / "bad.flv"
    bad.write_bytes(b"not an flv file at all")
    good = _two_recordings(tmp_path / "good.flv")

    assert cli.main([str(bad), good]) == 1
    out = capsys.readouterr().out
    assert "Batch processing 2 files." in out
    assert "Error while processing" in out
    assert (tmp_path / "good_fixed_0.flv").exists()


def test_missing_file_fails(tmp_path):
    assert cli.main([str(tmp_path / "missing.flv")]) == 1


def test_interactive_asks_until_answered(tmp_path, monkeypatch):
    source = _two_recordings(tmp_path / "rec.flv")
    answers = iter(["maybe", "", "YES"])
    prompts = []

    def fake_input(prompt):
        prompts.append(prompt)
        return next(answers)

    monkeypatch.setattr("builtins.input", fake_input)

    assert cli.main(["-i", source]) == 0
    assert len(prompts) == 3
    assert (tmp_path / "rec_fixed_0.flv").exists()


def test_interactive_no(tmp_path, monkeypatch):
    source = _two_recordings(tmp_path / "rec.flv")
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    assert cli.main(["--interactive", source]) == 0
    assert not (tmp_path / "rec_fixed_0.flv").exists()


def test_export_csv_and_output_dir(tmp_path):
    source = _two_recordings(tmp_path / "rec.flv")
    out_dir = tmp_path / "out"

    assert cli.main(["--export-csv", "-o", str(out_dir), source]) == 0
    assert (out_dir / "rec_tags.csv").exists()
    assert (out_dir / "rec_fixed_1.flv").exists()


def test_verify_reports_each_output(tmp_path, monkeypatch, capsys):
    source = _two_recordings(tmp_path / "rec.flv")
    checked = []

    def fake_verify(path):
        checked.append(path)
        return {'video': {'packets': 5, 'non_monotonic': 0, 'last_dts_ms': 132.0}}

    monkeypatch.setattr(cli, "verify_output", fake_verify)

    assert cli.main(["--verify", source]) == 0
    assert [os.path.basename(p) for p in checked] == ["rec_fixed_0.flv", "rec_fixed_1.flv"]
    assert "video: 5 packets, 0 non-monotonic timestamps" in capsys.readouterr().out
