"""
Batch processor for analyzing multiple audio files.

Files are analyzed concurrently; each file yields its own success or error
entry so one failure never aborts the others.
"""

import logging
import threading
import time
from concurrent.futures import (
    ThreadPoolExecutor,
    TimeoutError as FuturesTimeoutError,
    as_completed,
)
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from beatsense.core.loader import SUPPORTED_FORMATS
from beatsense.core.models import AnalysisResult
from beatsense.utils.errors import AnalysisTimeoutError, BatchLimitError
from beatsense.utils.logging import create_logger_with_context

MAX_FILES: int = 10
DEFAULT_TIMEOUT: float = 30.0  # seconds, whole batch


@dataclass
class FileAnalysis:
    """Outcome of analyzing one file: a result or an error message."""

    path: Path
    file_size: Optional[int] = None
    analysis: Optional[AnalysisResult] = None
    error: Optional[str] = None

    @property
    def file_name(self) -> str:
        return self.path.name

    @property
    def succeeded(self) -> bool:
        return self.analysis is not None

    def to_dict(self) -> Dict[str, Any]:
        """Per-file entry: {fileName, fileSize, analysis | error}."""
        entry: Dict[str, Any] = {
            'fileName': self.file_name,
            'fileSize': self.file_size,
        }
        if self.analysis is not None:
            entry['analysis'] = self.analysis.to_dict()
        else:
            entry['error'] = self.error
        return entry


@dataclass
class BatchResult:
    """Result of a batch processing operation, entries in input order."""
    entries: List[FileAnalysis] = field(default_factory=list)
    total_time: float = 0.0

    @property
    def total_files(self) -> int:
        return len(self.entries)

    @property
    def successful(self) -> Dict[Path, AnalysisResult]:
        """Results of files that were analyzed."""
        return {e.path: e.analysis for e in self.entries if e.analysis is not None}

    @property
    def failed(self) -> Dict[Path, str]:
        """Error messages of files that failed."""
        return {e.path: e.error for e in self.entries if e.analysis is None}

    @property
    def success_count(self) -> int:
        """Number of successfully processed files."""
        return len(self.successful)

    @property
    def failure_count(self) -> int:
        """Number of failed files."""
        return len(self.failed)

    @property
    def success_rate(self) -> float:
        """Success rate as percentage."""
        if self.total_files == 0:
            return 0.0
        return (self.success_count / self.total_files) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Batch document: {success, totalFiles, results}."""
        return {
            'success': self.total_files > 0,
            'totalFiles': self.total_files,
            'results': [entry.to_dict() for entry in self.entries]
        }


class BatchProcessor:
    """
    Processes multiple audio files using an analysis engine.

    Focuses solely on batch orchestration, delegating actual analysis to
    the engine.
    """

    def __init__(
        self,
        engine,
        max_workers: int = 4,
        max_files: int = MAX_FILES,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        progress_callback: Optional[Callable[[int, int, Path], None]] = None
    ):
        """
        Initialize batch processor.

        Args:
            engine: Analysis engine instance (dependency injection)
            max_workers: Maximum files analyzed at once
            max_files: Maximum files accepted in one batch
            timeout: Wall-clock budget in seconds for the batch (None = no limit)
            progress_callback: Optional callback(done, total, file_path) for progress updates
        """
        self.engine = engine
        self.max_workers = max_workers
        self.max_files = max_files
        self.timeout = timeout
        self.progress_callback = progress_callback
        self.logger = logging.getLogger("batch_processor")

    def process(
        self,
        inputs: Union[Path, List[Path]],
        recursive: bool = False
    ) -> BatchResult:
        """
        Process one or more audio files or directories.

        Args:
            inputs: Single path or list of paths (files or directories)
            recursive: If True, search directories recursively

        Returns:
            BatchResult containing an entry per file

        Raises:
            BatchLimitError: If more than max_files files are collected
        """
        start_time = time.time()

        files = self._collect_files(inputs, recursive)

        if not files:
            self.logger.warning("No audio files found to process")
            return BatchResult()

        if len(files) > self.max_files:
            raise BatchLimitError(len(files), self.max_files)

        self.logger.info(f"Processing {len(files)} audio files")

        result = self._process_files(files)
        result.total_time = time.time() - start_time

        self.logger.info(
            f"Batch complete: {result.success_count}/{result.total_files} succeeded "
            f"in {result.total_time:.2f}s"
        )

        return result

    def _collect_files(
        self,
        inputs: Union[Path, List[Path]],
        recursive: bool
    ) -> List[Path]:
        """
        Collect audio files from inputs, keeping input order.

        Explicit file paths are kept even when missing or unsupported so
        they are reported as failed entries.
        """
        if isinstance(inputs, (str, Path)):
            inputs = [inputs]

        files: List[Path] = []
        for path in inputs:
            path = Path(path)
            if path.is_dir():
                files.extend(self._scan_directory(path, recursive))
            else:
                files.append(path)

        # Remove duplicates, keep first occurrence
        return list(dict.fromkeys(files))

    def _scan_directory(self, directory: Path, recursive: bool) -> List[Path]:
        """Scan directory for audio files."""
        pattern = "**/*" if recursive else "*"
        return sorted(
            path for path in directory.glob(pattern)
            if path.is_file() and path.suffix.lower() in SUPPORTED_FORMATS
        )

    def _process_files(self, files: List[Path]) -> BatchResult:
        """
        Analyze files concurrently within the batch time budget.

        When the budget runs out, files not yet started are cancelled and
        every unfinished file gets a timeout entry. Python threads cannot be
        interrupted, so a file already being analyzed keeps its worker
        thread until the engine returns; that late result is discarded.
        """
        entries: Dict[Path, FileAnalysis] = {}
        expired = threading.Event()
        executor = ThreadPoolExecutor(max_workers=self.max_workers)

        try:
            futures = {
                executor.submit(self._analyze_file, path, expired): path
                for path in files
            }

            try:
                for future in as_completed(futures, timeout=self.timeout):
                    path = futures[future]
                    entries[path] = future.result()

                    if self.progress_callback:
                        self.progress_callback(len(entries), len(files), path)

            except FuturesTimeoutError:
                expired.set()
                for future, path in futures.items():
                    if path in entries:
                        continue
                    future.cancel()
                    error = AnalysisTimeoutError(str(path), self.timeout)
                    self.logger.error(f"Failed to process {path}: {error}")
                    entries[path] = FileAnalysis(
                        path=path,
                        file_size=_file_size(path),
                        error=str(error)
                    )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return BatchResult(entries=[entries[path] for path in files])

    def _analyze_file(self, file_path: Path, expired: threading.Event) -> FileAnalysis:
        """Analyze one file, turning any failure into an error entry."""
        logger = create_logger_with_context("batch_processor", {"file": str(file_path)})
        file_size = _file_size(file_path)
        if expired.is_set():
            logger.debug(f"Skipping {file_path}: batch time budget exhausted")
            return FileAnalysis(
                path=file_path,
                file_size=file_size,
                error=str(AnalysisTimeoutError(str(file_path), self.timeout))
            )
        try:
            analysis = self.engine.analyze(file_path)
            logger.debug(f"Successfully processed: {file_path}")
            return FileAnalysis(path=file_path, file_size=file_size, analysis=analysis)
        except Exception as e:
            error_msg = str(e)
            logger.error(
                f"Failed to process {file_path}: {error_msg}",
                extra={"error_type": type(e).__name__}
            )
            return FileAnalysis(path=file_path, file_size=file_size, error=error_msg)


def _file_size(path: Path) -> Optional[int]:
    try:
        return path.stat().st_size
    except OSError:
        return None


def create_batch_processor(
    engine,
    config: Dict[str, Any],
    progress_callback: Optional[Callable[[int, int, Path], None]] = None
) -> BatchProcessor:
    """Factory function to create a BatchProcessor from the performance config."""
    performance = config.get('performance', {})
    return BatchProcessor(
        engine,
        max_workers=performance.get('max_workers', 4),
        max_files=performance.get('max_files', MAX_FILES),
        timeout=performance.get('timeout', DEFAULT_TIMEOUT),
        progress_callback=progress_callback
    )
