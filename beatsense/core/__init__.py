"""
Core module containing data models, DSP building blocks and the analysis engine.

Uses lazy imports for modules with heavy dependencies (librosa, soundfile).
"""

# Models are lightweight - import directly
from beatsense.core.models import (
    SampleBuffer,
    FeatureCache,
    MethodEstimate,
    BPMAnalysis,
    DanceTag,
    DanceabilityAnalysis,
    MoodTag,
    MoodAnalysis,
    SignalStats,
    AnalysisResult,
    validate_confidence,
)

__all__ = [
    # Models (always available)
    "SampleBuffer",
    "FeatureCache",
    "MethodEstimate",
    "BPMAnalysis",
    "DanceTag",
    "DanceabilityAnalysis",
    "MoodTag",
    "MoodAnalysis",
    "SignalStats",
    "AnalysisResult",
    "validate_confidence",
    # Heavy modules (lazy loaded)
    "AudioLoader",
    "create_audio_loader",
    "FeatureExtractor",
    "Analyzer",
    "BaseAnalyzer",
    "AudioAnalysisEngine",
    "create_analysis_engine",
    # Batch processing
    "BatchProcessor",
    "BatchResult",
    "ResultWriter",
    "TextResultWriter",
    "JSONResultWriter",
    "create_result_writer",
]

_LAZY = {
    "AudioLoader": "beatsense.core.loader",
    "create_audio_loader": "beatsense.core.loader",
    "FeatureExtractor": "beatsense.core.features",
    "Analyzer": "beatsense.core.analyzer_base",
    "BaseAnalyzer": "beatsense.core.analyzer_base",
    "AudioAnalysisEngine": "beatsense.core.engine",
    "create_analysis_engine": "beatsense.core.engine",
    "BatchProcessor": "beatsense.core.batch_processor",
    "BatchResult": "beatsense.core.batch_processor",
    "ResultWriter": "beatsense.core.result_writer",
    "TextResultWriter": "beatsense.core.result_writer",
    "JSONResultWriter": "beatsense.core.result_writer",
    "create_result_writer": "beatsense.core.result_writer",
}


def __getattr__(name: str):
    """Lazy load modules with heavy dependencies."""
    if name in _LAZY:
        import importlib
        module = importlib.import_module(_LAZY[name])
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
