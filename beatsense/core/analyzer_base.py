"""
Analyzer base interface for BeatSense.

Defines the contract for all analyzers using Protocol (structural subtyping)
and a template-method base class with timing, logging and degenerate-input
recovery.
"""

import logging
import time
from abc import abstractmethod
from typing import Generic, Protocol, TypeVar

from beatsense.core.models import SampleBuffer
from beatsense.utils.errors import AnalysisError, DegenerateInputError, NumericGuardError

# Type variable for result types
T = TypeVar('T')


class Analyzer(Protocol[T]):
    """
    Base protocol for all analyzers.

    All analyzers must implement:
    - analyze(buffer) -> T
    - name property
    - version property
    """

    @property
    def name(self) -> str:
        """Analyzer name (e.g., 'bpm', 'mood')."""
        ...

    @property
    def version(self) -> str:
        """Analyzer version for result tracking."""
        ...

    def analyze(self, buffer: SampleBuffer) -> T:
        """
        Analyze a sample buffer and return a typed result.

        Raises:
            AnalysisError: If analysis fails
        """
        ...


class BaseAnalyzer(Generic[T]):
    """
    Base class providing timing, logging and error handling.

    Uses Template Method pattern - analyze() provides the template,
    subclasses implement _analyze_impl() and default_result().
    """

    def __init__(self, name: str, version: str):
        """
        Initialize analyzer with name and version.

        Args:
            name: Unique analyzer name
            version: Version string for tracking
        """
        self._name = name
        self._version = version
        self.logger = logging.getLogger(f"analyzer.{name}")

    @property
    def name(self) -> str:
        """Return analyzer name."""
        return self._name

    @property
    def version(self) -> str:
        """Return analyzer version."""
        return self._version

    def analyze(self, buffer: SampleBuffer) -> T:
        """
        Template method with timing and error handling.

        Degenerate input (too short, silent) and numeric guard failures
        yield default_result() instead of an exception.

        Raises:
            AnalysisError: If analysis fails for any other reason
        """
        start_time = time.time()

        try:
            self.logger.debug(
                f"Starting analysis of {len(buffer)} samples at {buffer.sample_rate} Hz"
            )

            result = self._analyze_impl(buffer)

            elapsed = time.time() - start_time
            self.logger.info(
                f"Analysis complete in {elapsed:.3f}s",
                extra={"analyzer": self.name, "elapsed": elapsed}
            )

            return result

        except (DegenerateInputError, NumericGuardError) as e:
            self.logger.warning(
                f"Falling back to default result: {e.message}",
                extra={"analyzer": self.name}
            )
            return self.default_result()

        except AnalysisError:
            # Re-raise AnalysisError as-is
            raise

        except Exception as e:
            self.logger.error(f"Analysis failed: {e}")
            raise AnalysisError(
                f"{self.name} analysis failed: {e}",
                analyzer_name=self.name,
                original_error=e
            ) from e

    def require_frames(self, buffer: SampleBuffer, frame_size: int) -> None:
        """
        Raise DegenerateInputError unless *buffer* holds at least one
        non-silent frame of *frame_size* samples.
        """
        if len(buffer) < frame_size:
            raise DegenerateInputError(
                f"Buffer of {len(buffer)} samples is shorter than one "
                f"{frame_size}-sample frame",
                analyzer_name=self.name,
                n_samples=len(buffer),
                required=frame_size
            )
        if buffer.is_silent:
            raise DegenerateInputError(
                "Buffer is silent",
                analyzer_name=self.name,
                n_samples=len(buffer),
                required=frame_size
            )

    @abstractmethod
    def _analyze_impl(self, buffer: SampleBuffer) -> T:
        """Subclasses implement actual analysis logic."""
        raise NotImplementedError

    @abstractmethod
    def default_result(self) -> T:
        """Result reported when the input cannot be analyzed."""
        raise NotImplementedError
