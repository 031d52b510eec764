"""Client validation pipeline.

Validation runs as explicit, testable phases over a ``DraftBatch`` and
communicates through a shared ``PipelineContext``.
"""

from __future__ import annotations

from .context import DraftBatch, DraftEntry, PipelineContext
from .deduplication import DuplicateCheckPhase
from .normalization import NormalizationPhase
from .orchestrator import IngestionPipeline, PipelinePhase
from .runner import ValidationResult, default_pipeline, validate
from .validation import ValidationPhase

__all__ = [
    "DraftBatch",
    "DraftEntry",
    "DuplicateCheckPhase",
    "IngestionPipeline",
    "NormalizationPhase",
    "PipelineContext",
    "PipelinePhase",
    "ValidationPhase",
    "ValidationResult",
    "default_pipeline",
    "validate",
]
