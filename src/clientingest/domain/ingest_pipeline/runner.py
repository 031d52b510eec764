"""Entry points for running the validation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from clientingest.domain.model import DuplicatePolicy, IngestionSource

from .context import DraftBatch, PipelineContext
from .deduplication import DuplicateCheckPhase
from .normalization import NormalizationPhase
from .orchestrator import IngestionPipeline
from .validation import ValidationPhase

if TYPE_CHECKING:
    from collections.abc import Iterable

    from clientingest.domain.model import ClientDraft


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: tuple[ClientDraft, ...]
    errors: tuple[str, ...]
    notices: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


def default_pipeline() -> IngestionPipeline:
    return IngestionPipeline(
        phases=(NormalizationPhase(), ValidationPhase(), DuplicateCheckPhase())
    )


def validate(
    drafts: Iterable[ClientDraft],
    *,
    source: IngestionSource = IngestionSource.API,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPORT,
) -> ValidationResult:
    """Normalize, validate and duplicate-check ``drafts``.

    Errors are collected, never raised. ``valid`` holds the normalized drafts
    that passed the per-name rules, in input order.
    """

    batch = DraftBatch.from_drafts(drafts)
    context = PipelineContext(source=source, duplicate_policy=duplicate_policy)
    default_pipeline().run(batch, context=context)
    return ValidationResult(
        valid=batch.accepted_drafts(),
        errors=tuple(context.errors),
        notices=tuple(context.notices),
    )
