"""Intra-batch duplicate name detection phase."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from clientingest.domain.ingest_pipeline.orchestrator import PipelinePhase
from clientingest.domain.model import DuplicatePolicy

if TYPE_CHECKING:
    from clientingest.domain.ingest_pipeline.context import DraftBatch, PipelineContext

log = getLogger(__name__)


class DuplicateCheckPhase(PipelinePhase):
    """Reports repeated normalized names among the accepted drafts.

    One batch-level message is emitted however many names repeat. Under
    ``DuplicatePolicy.REPORT`` it is an error and every draft is kept; under
    ``DuplicatePolicy.EXCLUDE`` later occurrences are dropped (the first one
    wins) and the message becomes a notice.
    """

    name: str = "duplicate-check"

    def run(self, batch: DraftBatch, *, context: PipelineContext) -> None:
        exclude = context.duplicate_policy is DuplicatePolicy.EXCLUDE
        seen: set[str] = set()
        duplicates: list[str] = []
        for entry in batch.accepted():
            name = entry.draft.name
            if name not in seen:
                seen.add(name)
                continue
            if name not in duplicates:
                duplicates.append(name)
            if exclude:
                entry.accepted = False

        if not duplicates:
            return
        log.info("Duplicate client names found: %s", ", ".join(duplicates))
        context.duplicate_names.extend(duplicates)
        message = f"There are duplicate client names in the {context.source.label}"
        if exclude:
            context.notices.append(message)
        else:
            context.errors.append(message)
