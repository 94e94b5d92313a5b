"""
Analysis engine for BeatSense.

Downsamples a buffer to the working rate and runs the tempo, danceability
and mood analyzers concurrently on it.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, Optional

from beatsense.analyzers.bpm import create_bpm_analyzer
from beatsense.analyzers.danceability import create_danceability_analyzer
from beatsense.analyzers.mood import create_mood_analyzer
from beatsense.core.features import basic_stats
from beatsense.core.framing import downsample
from beatsense.core.loader import AudioLoader, create_audio_loader
from beatsense.core.models import AnalysisResult, SampleBuffer

TARGET_SAMPLE_RATE: int = 11025  # Hz


class AudioAnalysisEngine:
    """
    Main analysis engine - orchestrates the analyzers.

    Design:
    - Dependency Injection: analyzers and loader are injected (testable)
    - Parallel Execution: the three analyzers run concurrently
    - Stateless: nothing survives between analyses except the thread pool
    """

    def __init__(
        self,
        bpm_analyzer: Any,
        danceability_analyzer: Any,
        mood_analyzer: Any,
        loader: Optional[AudioLoader] = None,
        target_sample_rate: int = TARGET_SAMPLE_RATE,
    ):
        """
        Initialize analysis engine.

        Args:
            bpm_analyzer: Tempo analyzer
            danceability_analyzer: Danceability analyzer
            mood_analyzer: Mood analyzer
            loader: Optional AudioLoader used by analyze()
            target_sample_rate: Rate the analyzers run at
        """
        self.analyzers = {
            'bpm': bpm_analyzer,
            'danceability': danceability_analyzer,
            'mood': mood_analyzer
        }
        self.loader = loader
        self.target_sample_rate = target_sample_rate
        self.executor = ThreadPoolExecutor(max_workers=len(self.analyzers))
        self.logger = logging.getLogger('engine')

    def analyze(self, file_path: Path) -> AnalysisResult:
        """
        Load and analyze an audio file.

        Raises:
            RuntimeError: If the engine was created without a loader
            AudioLoadError: If the file cannot be loaded or decoded
            AnalysisError: If an analyzer fails
        """
        if self.loader is None:
            raise RuntimeError("No loader configured. Use analyze_buffer() instead.")

        file_path = Path(file_path)
        self.logger.info(f"Loading audio: {file_path}")
        buffer = self.loader.load(file_path)
        return self.analyze_buffer(buffer, source=file_path.name)

    def analyze_buffer(
        self,
        buffer: SampleBuffer,
        source: Optional[str] = None
    ) -> AnalysisResult:
        """
        Analyze a decoded mono buffer.

        Args:
            buffer: Samples at their original sample rate
            source: Optional label (e.g. file name) stored on the result

        Returns:
            AnalysisResult: Aggregated result
        """
        start_time = time.time()

        working = downsample(buffer, self.target_sample_rate)
        self.logger.debug(
            f"Downsampled {buffer.sample_rate} Hz -> {working.sample_rate} Hz "
            f"({len(working)} samples)"
        )

        results = self._run_analyzers_parallel(working)

        processing_time = time.time() - start_time
        self.logger.info(
            f"Analysis complete in {processing_time:.3f}s",
            extra={"source": source, "processing_time": processing_time}
        )

        return AnalysisResult(
            bpm=results['bpm'],
            danceability=results['danceability'],
            mood=results['mood'],
            stats=basic_stats(buffer.samples),
            sample_rate=working.sample_rate,
            duration=buffer.duration,
            processing_time=processing_time,
            analyzer_versions={
                name: getattr(analyzer, 'version', '1.0.0')
                for name, analyzer in self.analyzers.items()
            },
            source=source
        )

    def _run_analyzers_parallel(self, buffer: SampleBuffer) -> Dict[str, Any]:
        """
        Run all analyzers in parallel.

        The first analyzer failure is re-raised after logging.

        Returns:
            dict: {name: result}
        """
        futures = {
            self.executor.submit(analyzer.analyze, buffer): name
            for name, analyzer in self.analyzers.items()
        }

        results: Dict[str, Any] = {}
        for future in as_completed(futures):
            name = futures[future]
            try:
                results[name] = future.result()
                self.logger.debug(f"{name} complete")
            except Exception as e:
                self.logger.error(f"{name} failed: {e}")
                for pending in futures:
                    pending.cancel()
                raise

        return results

    def shutdown(self) -> None:
        """Shutdown thread pool gracefully."""
        self.logger.info("Shutting down analysis engine")
        self.executor.shutdown(wait=True)

    def __enter__(self) -> "AudioAnalysisEngine":
        """Context manager support."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Cleanup on context exit."""
        self.shutdown()


def create_analysis_engine(config: Dict[str, Any]) -> AudioAnalysisEngine:
    """
    Factory function to create fully configured analysis engine.

    Args:
        config: Configuration dict

    Returns:
        AudioAnalysisEngine: Configured engine
    """
    audio_config = config.get('audio', {})

    return AudioAnalysisEngine(
        bpm_analyzer=create_bpm_analyzer(config),
        danceability_analyzer=create_danceability_analyzer(config),
        mood_analyzer=create_mood_analyzer(config),
        loader=create_audio_loader(audio_config),
        target_sample_rate=audio_config.get('target_sample_rate', TARGET_SAMPLE_RATE),
    )
