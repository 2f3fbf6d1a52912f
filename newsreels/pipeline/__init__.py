"""Pipeline infrastructure: guarded calls, stage runner, stages."""

from .external import ExternalCaller
from .base import PipelineStage, StageRunner, StageOutcome, StageError, summarize

__all__ = [
    "ExternalCaller",
    "PipelineStage",
    "StageRunner",
    "StageOutcome",
    "StageError",
    "summarize",
]
