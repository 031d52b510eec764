"""Per-draft name validation phase."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from clientingest.domain.ingest_pipeline.orchestrator import PipelinePhase
from clientingest.domain.model import validate_client_name

if TYPE_CHECKING:
    from clientingest.domain.ingest_pipeline.context import DraftBatch, PipelineContext

log = getLogger(__name__)


class ValidationPhase(PipelinePhase):
    """Rejects drafts whose normalized name breaks the name rules."""

    name: str = "validation"

    def run(self, batch: DraftBatch, *, context: PipelineContext) -> None:
        for entry in batch.accepted():
            outcome = validate_client_name(entry.draft.name)
            if outcome.is_valid:
                continue
            entry.accepted = False
            context.rejected_count += 1
            context.errors.append(context.describe(entry, outcome.message))
        if context.rejected_count:
            log.debug("Rejected %d of %d drafts", context.rejected_count, len(batch.entries))
