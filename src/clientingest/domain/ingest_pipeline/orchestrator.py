"""Runs the validation phases over a draft batch in a fixed order."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from clientingest.domain.ingest_pipeline.context import DraftBatch, PipelineContext

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

log = getLogger(__name__)


class PipelinePhase(Protocol):
    """A named step that inspects or rewrites the entries of a batch."""

    name: str

    def run(self, batch: DraftBatch, *, context: PipelineContext) -> None: ...


@dataclass(slots=True)
class IngestionPipeline:
    """Immutable sequence of phases; ``with_phase``/``extend`` build new pipelines."""

    phases: Sequence[PipelinePhase] = field(default_factory=tuple)

    def with_phase(self, phase: PipelinePhase) -> IngestionPipeline:
        return self.extend((phase,))

    def extend(self, phases: Iterable[PipelinePhase]) -> IngestionPipeline:
        return IngestionPipeline(phases=(*self.phases, *phases))

    def run(self, batch: DraftBatch, *, context: PipelineContext | None = None) -> DraftBatch:
        """Apply every phase to ``batch`` and return it; rejected entries stay in place."""

        context = context if context is not None else PipelineContext()
        for phase in self.phases:
            phase.run(batch, context=context)
            log.debug(
                "Phase %s: %d of %d draft(s) still accepted",
                phase.name,
                len(batch.accepted()),
                len(batch.entries),
            )
        return batch
