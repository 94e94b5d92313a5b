"""
Result writer for outputting batch analysis reports to files.

New output formats can be added by subclassing ResultWriter and
registering the class in create_result_writer.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import TextIO

from beatsense.core.batch_processor import BatchResult, FileAnalysis
from beatsense.core.models import AnalysisResult


class ResultWriter(ABC):
    """Abstract base class for result writers (Strategy Pattern)."""

    @abstractmethod
    def write(self, batch: BatchResult, output_path: Path) -> None:
        """Write results to the specified path."""
        pass


class TextResultWriter(ResultWriter):
    """Writes analysis results to a human-readable text file."""

    def __init__(self, include_timestamp: bool = True):
        """
        Initialize text writer.

        Args:
            include_timestamp: Whether to include timestamp in output
        """
        self.include_timestamp = include_timestamp
        self.logger = logging.getLogger("result_writer.text")

    def write(self, batch: BatchResult, output_path: Path) -> None:
        """
        Write a batch report to a text file.

        Args:
            batch: Batch result with one entry per file
            output_path: Path to output text file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("=" * 70 + "\n")
            f.write("BEATSENSE ANALYSIS REPORT\n")
            f.write("=" * 70 + "\n")

            if self.include_timestamp:
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")

            f.write(
                f"Files: {batch.total_files} "
                f"({batch.success_count} analyzed, {batch.failure_count} failed)\n"
            )
            f.write("=" * 70 + "\n\n")

            for entry in batch.entries:
                self._write_entry(f, entry)

            f.write("=" * 70 + "\n")
            f.write("END OF REPORT\n")
            f.write("=" * 70 + "\n")

        self.logger.info(f"Results written to: {output_path}")

    def _write_entry(self, f: TextIO, entry: FileAnalysis) -> None:
        """Write a single file's section."""
        f.write("-" * 70 + "\n")
        f.write(f"FILE: {entry.file_name}\n")
        f.write(f"PATH: {entry.path}\n")
        f.write("-" * 70 + "\n")

        if entry.analysis is None:
            f.write(f"ERROR: {entry.error}\n\n")
            return

        self._write_analysis(f, entry.analysis)
        f.write("\n")

    def _write_analysis(self, f: TextIO, result: AnalysisResult) -> None:
        f.write(f"Processing Time: {result.processing_time:.3f}s\n")
        f.write(f"Duration: {result.duration:.2f}s\n")
        f.write(f"\nSummary: {result.get_summary()}\n")

        bpm = result.bpm
        f.write("\nTempo:\n")
        f.write(f"  BPM: {bpm.bpm} ({bpm.tempo_category})\n")
        f.write(f"  Confidence: {bpm.confidence:.2%}\n")
        for name, estimate in bpm.methods.items():
            f.write(
                f"    {name:<10} {estimate.bpm:6.1f} BPM  "
                f"(confidence {estimate.confidence:.2%})\n"
            )

        dance = result.danceability
        f.write("\nDanceability:\n")
        f.write(f"  Score: {dance.score:.1f}/100 ({dance.category})\n")
        f.write(f"  Confidence: {dance.confidence:.2%}\n")
        f.write(f"  Rhythm Strength: {dance.rhythm_strength:.2f}\n")
        f.write(f"  Beat Consistency: {dance.beat_consistency:.2f}\n")
        f.write(f"  Energy Distribution: {dance.energy_distribution:.2f}\n")
        f.write(f"  Tempo Stability: {dance.tempo_stability:.2f}\n")
        f.write(f"  Syncopation: {dance.syncopation:.2f}\n")
        f.write(f"  Groove Factor: {dance.groove_factor:.2f}\n")
        if dance.types:
            f.write(f"  Tags: {', '.join(tag.type for tag in dance.types)}\n")

        mood = result.mood
        f.write("\nMood:\n")
        f.write(f"  Primary: {mood.emoji} {mood.primary_mood}\n")
        f.write(f"  Secondary: {mood.secondary_mood}\n")
        f.write(f"  Song Type: {mood.song_type}\n")
        f.write(f"  Confidence: {mood.confidence:.2%}\n")
        if mood.explanation:
            f.write(f"  Explanation: {mood.explanation}\n")
        for tag in mood.detailed_analysis:
            f.write(f"    {tag.label}: {tag.level} - {tag.description}\n")

        if result.stats:
            stats = result.stats
            f.write("\nSignal:\n")
            f.write(f"  RMS: {stats.rms:.4f}\n")
            f.write(f"  Peak/Valley: {stats.peak:.4f} / {stats.valley:.4f}\n")
            f.write(f"  Dynamic Range: {stats.dynamic_range:.4f}\n")


class JSONResultWriter(ResultWriter):
    """Writes analysis results to a JSON file."""

    def __init__(self, indent: int = 2):
        """
        Initialize JSON writer.

        Args:
            indent: JSON indentation level
        """
        self.indent = indent
        self.logger = logging.getLogger("result_writer.json")

    def write(self, batch: BatchResult, output_path: Path) -> None:
        """
        Write the batch document to a JSON file.

        Args:
            batch: Batch result with one entry per file
            output_path: Path to output JSON file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        output_data = {"generated": datetime.now().isoformat()}
        output_data.update(batch.to_dict())

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(output_data, f, indent=self.indent, ensure_ascii=False, default=str)

        self.logger.info(f"Results written to: {output_path}")


def create_result_writer(format: str = "text", **kwargs) -> ResultWriter:
    """
    Factory function to create appropriate result writer.

    Args:
        format: Output format ("text" or "json")
        **kwargs: Additional arguments for the writer

    Returns:
        Appropriate ResultWriter instance
    """
    writers = {
        "text": TextResultWriter,
        "txt": TextResultWriter,
        "json": JSONResultWriter,
    }

    writer_class = writers.get(format.lower())
    if writer_class is None:
        raise ValueError(f"Unknown format: {format}. Supported: {list(writers.keys())}")

    return writer_class(**kwargs)
