"""Composes short-form videos from rendered scene assets with FFmpeg."""

from shorts_compose.exceptions import ComposeError
from shorts_compose.render import ComposeOutcome, StageExecutor, VideoComposer
from shorts_compose.schemas import CompositionRequest, CompositionResult

__version__ = "0.1.0"

__all__ = [
    "ComposeError",
    "ComposeOutcome",
    "CompositionRequest",
    "CompositionResult",
    "StageExecutor",
    "VideoComposer",
]
