"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import numpy as np
import pytest
import soundfile as sf

from beatsense.cli import build_parser, main


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep main() from reconfiguring the root logger during tests."""
    with patch("beatsense.cli.setup_logging") as mocked:
        yield mocked


@pytest.fixture
def pulse_wav(tmp_path, pulse_samples):
    path = tmp_path / "pulse.wav"
    sf.write(str(path), pulse_samples, 11025)
    return path


class TestParser:
    """Argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args(["a.wav"])

        assert args.format == "text"
        assert args.output is None
        assert args.workers is None
        assert not args.verbose

    def test_requires_input(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_rejects_unknown_format(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["a.wav", "--format", "xml"])


class TestMain:
    """End-to-end runs."""

    def test_json_report(self, pulse_wav, tmp_path, capsys):
        output = tmp_path / "report.json"

        code = main([str(pulse_wav), "--format", "json", "--output", str(output)])

        assert code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["totalFiles"] == 1
        assert data["results"][0]["fileName"] == "pulse.wav"
        assert 0 <= data["results"][0]["analysis"]["bpm"]["bpm"] <= 200
        assert "ANALYSIS COMPLETE" in capsys.readouterr().out

    def test_all_failed_returns_one(self, tmp_path, capsys):
        code = main([str(tmp_path / "missing.wav")])

        assert code == 1
        assert "missing.wav" in capsys.readouterr().out

    def test_mixed_batch_succeeds(self, pulse_wav, tmp_path):
        broken = tmp_path / "broken.wav"
        broken.write_bytes(np.zeros(16, dtype=np.uint8).tobytes())

        assert main([str(pulse_wav), str(broken)]) == 0

    def test_batch_limit(self, pulse_wav, capsys):
        code = main([str(pulse_wav)] + [f"extra{i}.wav" for i in range(10)])

        assert code == 1
        assert "Too many files" in capsys.readouterr().out

    def test_invalid_workers(self, pulse_wav, capsys):
        assert main([str(pulse_wav), "--workers", "0"]) == 1
        assert "--workers" in capsys.readouterr().out

    def test_bad_config(self, pulse_wav, tmp_path, capsys):
        code = main([str(pulse_wav), "--config", str(tmp_path / "missing.yaml")])

        assert code == 1
        assert "Configuration file not found" in capsys.readouterr().out

    def test_verbose_sets_debug(self, pulse_wav, no_logging_setup):
        main([str(pulse_wav), "--verbose"])

        assert no_logging_setup.call_args.kwargs["level"] == "DEBUG"
