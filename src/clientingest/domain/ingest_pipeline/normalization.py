"""Name clean-up ahead of validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clientingest.domain.ingest_pipeline.orchestrator import PipelinePhase
from clientingest.domain.model import normalize_client_name

if TYPE_CHECKING:
    from clientingest.domain.ingest_pipeline.context import DraftBatch, PipelineContext


class NormalizationPhase(PipelinePhase):
    """Trims names and collapses whitespace runs; never rejects a draft."""

    name: str = "normalization"

    def run(self, batch: DraftBatch, *, context: PipelineContext) -> None:
        for entry in batch.entries:
            cleaned = normalize_client_name(entry.draft.name)
            if cleaned != entry.draft.name:
                entry.draft = entry.draft.with_name(cleaned)
        context.normalized_count += len(batch.entries)
