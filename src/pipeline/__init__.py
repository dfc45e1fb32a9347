"""Pipeline orchestration components for setlistify playlist generation."""

from src.pipeline.orchestrator import PlaylistGenerationPipeline
from src.pipeline.progress_tracker import ProgressTracker

__all__ = [
    "PlaylistGenerationPipeline",
    "ProgressTracker",
]
