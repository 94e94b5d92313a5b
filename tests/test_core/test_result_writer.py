"""Tests for text and JSON report writers."""

import json
from pathlib import Path

import pytest

from beatsense.analyzers.bpm import BPMAnalyzer
from beatsense.analyzers.danceability import DanceabilityAnalyzer
from beatsense.analyzers.mood import MoodAnalyzer
from beatsense.core.batch_processor import BatchResult, FileAnalysis
from beatsense.core.models import AnalysisResult, SignalStats
from beatsense.core.result_writer import (
    JSONResultWriter,
    TextResultWriter,
    create_result_writer,
)


@pytest.fixture
def batch():
    """One analyzed file and one failure."""
    analysis = AnalysisResult(
        bpm=BPMAnalyzer().default_result(),
        danceability=DanceabilityAnalyzer().default_result(),
        mood=MoodAnalyzer().default_result(),
        stats=SignalStats(mean=0.0, rms=0.1, dynamic_range=0.4, peak=0.2, valley=-0.2),
        sample_rate=11025,
        duration=3.0,
        source="good.wav",
    )
    return BatchResult(entries=[
        FileAnalysis(path=Path("music/good.wav"), file_size=1000, analysis=analysis),
        FileAnalysis(path=Path("music/bad.mp3"), file_size=50, error="Failed to decode"),
    ])


class TestTextResultWriter:
    """Human-readable report."""

    def test_sections(self, tmp_path, batch):
        output = tmp_path / "report.txt"

        TextResultWriter().write(batch, output)

        content = output.read_text(encoding="utf-8")
        assert "BEATSENSE ANALYSIS REPORT" in content
        assert "Files: 2 (1 analyzed, 1 failed)" in content
        assert "FILE: good.wav" in content
        assert "BPM: 120 (Allegro)" in content
        assert "🎵 Neutral" in content
        assert "FILE: bad.mp3" in content
        assert "ERROR: Failed to decode" in content
        assert content.rstrip().endswith("=" * 70)

    def test_without_timestamp(self, tmp_path, batch):
        output = tmp_path / "report.txt"

        TextResultWriter(include_timestamp=False).write(batch, output)

        assert "Generated:" not in output.read_text(encoding="utf-8")

    def test_creates_parent_directories(self, tmp_path, batch):
        output = tmp_path / "nested" / "dir" / "report.txt"

        TextResultWriter().write(batch, output)

        assert output.exists()


class TestJSONResultWriter:
    """Batch document on disk."""

    def test_document(self, tmp_path, batch):
        output = tmp_path / "report.json"

        JSONResultWriter().write(batch, output)

        data = json.loads(output.read_text(encoding="utf-8"))
        assert "generated" in data
        assert data["success"] is True
        assert data["totalFiles"] == 2
        assert data["results"][0]["fileName"] == "good.wav"
        assert data["results"][0]["analysis"]["bpm"]["bpm"] == 120
        assert data["results"][1] == {
            "fileName": "bad.mp3", "fileSize": 50, "error": "Failed to decode"
        }

    def test_emoji_written_verbatim(self, tmp_path, batch):
        output = tmp_path / "report.json"

        JSONResultWriter().write(batch, output)

        assert "🧍" in output.read_text(encoding="utf-8")


class TestCreateResultWriter:
    """Writer factory."""

    @pytest.mark.parametrize("fmt,cls", [
        ("text", TextResultWriter),
        ("TXT", TextResultWriter),
        ("json", JSONResultWriter),
    ])
    def test_known_formats(self, fmt, cls):
        assert isinstance(create_result_writer(fmt), cls)

    def test_kwargs_forwarded(self):
        assert create_result_writer("json", indent=4).indent == 4

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown format"):
            create_result_writer("xml")
