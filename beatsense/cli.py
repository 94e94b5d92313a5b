"""
BeatSense - tempo, danceability and mood analysis CLI

This module provides the command-line interface. It can be invoked as
'beatsense' from anywhere after installation.

Example usage:
    beatsense track.wav
    beatsense --format json --output report.json a.wav b.mp3
    beatsense --workers 2 --verbose samples/
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from beatsense.core.batch_processor import BatchResult, create_batch_processor
from beatsense.core.engine import create_analysis_engine
from beatsense.core.models import AnalysisResult
from beatsense.core.result_writer import create_result_writer
from beatsense.utils.config import load_config
from beatsense.utils.errors import AudioAnalysisError
from beatsense.utils.logging import setup_logging


def print_single_result(file_name: str, result: AnalysisResult) -> None:
    """Print analysis results for a single file to console."""
    print("\n" + "=" * 60)
    print(f"File: {file_name}")
    print(f"Duration: {result.duration:.2f}s | Processing Time: {result.processing_time:.3f}s")
    print("-" * 60)
    print(result.get_summary())
    print("-" * 60)

    print("\nTempo:")
    print(f"  BPM: {result.bpm.bpm} ({result.bpm.tempo_category})")
    print(f"  Confidence: {result.bpm.confidence:.2%}")

    print("\nDanceability:")
    print(f"  Score: {result.danceability.score:.1f}/100 ({result.danceability.category})")
    for tag in result.danceability.types:
        print(f"  {tag.type}: {tag.description}")

    print("\nMood:")
    print(f"  {result.mood.emoji} {result.mood.primary_mood} / {result.mood.secondary_mood}")
    print(f"  Song Type: {result.mood.song_type}")
    if result.mood.explanation:
        print(f"  {result.mood.explanation}")


def print_batch_summary(batch: BatchResult) -> None:
    """Print per-file results and totals."""
    for entry in batch.entries:
        if entry.analysis is not None:
            print_single_result(entry.file_name, entry.analysis)

    print("\n" + "=" * 60)
    print("ANALYSIS COMPLETE")
    print("=" * 60)
    print(f"Total Files: {batch.total_files}")
    print(f"Successful: {batch.success_count}")
    print(f"Failed: {batch.failure_count}")
    print(f"Total Time: {batch.total_time:.2f}s")

    if batch.failed:
        print("\nFailed Files:")
        for path, error in batch.failed.items():
            print(f"  {path.name}: {error}")


def analyze_files(
    inputs: List[Path],
    config: dict,
    output: Optional[Path] = None,
    output_format: str = "text",
    verbose: bool = False
) -> int:
    """
    Analyze files and optionally write a report.

    Returns:
        Exit code (0 if at least one file was analyzed, 1 otherwise)
    """
    engine = create_analysis_engine(config)

    def progress_callback(current: int, total: int, file_path: Path) -> None:
        """Print progress updates."""
        print(f"[{current}/{total}] Finished: {file_path.name}", file=sys.stderr)

    try:
        processor = create_batch_processor(engine, config, progress_callback)
        batch = processor.process(inputs)

        if batch.total_files == 0:
            print("Error: No audio files found.")
            return 1

        print_batch_summary(batch)

        if output:
            writer = create_result_writer(output_format)
            writer.write(batch, output)
            print(f"\nReport saved to: {output}")

        return 0 if batch.success_count > 0 else 1

    except AudioAnalysisError as e:
        print(f"Error: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        return 1

    finally:
        engine.shutdown()


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="beatsense",
        description="Estimate tempo, danceability and mood of audio files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  beatsense track.wav
  beatsense a.wav b.flac c.mp3
  beatsense --format json --output report.json samples/
        """
    )

    parser.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="Audio files or directories to analyze"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Write a report to this path"
    )
    parser.add_argument(
        "--format",
        "-f",
        choices=["text", "json"],
        default="text",
        help="Report format (default: text)"
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help="Files analyzed in parallel (overrides config)"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for BeatSense."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(str(args.config) if args.config else None)
    except AudioAnalysisError as e:
        print(f"Error: {e}")
        return 1

    if args.workers is not None:
        if args.workers < 1:
            print("Error: --workers must be at least 1")
            return 1
        config.setdefault("performance", {})["max_workers"] = args.workers

    logging_config = config.get("logging", {})
    setup_logging(
        level="DEBUG" if args.verbose else logging_config.get("level", "INFO"),
        log_format=logging_config.get("format", "text"),
        log_file=logging_config.get("file"),
        colored=True,
        console_enabled=True
    )

    return analyze_files(
        args.inputs,
        config,
        output=args.output,
        output_format=args.format,
        verbose=args.verbose
    )


if __name__ == "__main__":
    sys.exit(main())
