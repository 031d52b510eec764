"""Shared context structures for the validation pipeline (drafts + state)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from clientingest.domain.model import DuplicatePolicy, IngestionSource

if TYPE_CHECKING:
    from collections.abc import Iterable

    from clientingest.domain.model import ClientDraft


@dataclass(slots=True)
class DraftEntry:
    """One draft travelling through the phases.

    ``raw_name`` is the name as extracted, kept for error messages after the
    draft itself carries the normalized name.
    """

    draft: ClientDraft
    raw_name: str
    position: int
    accepted: bool = True

    @property
    def row_index(self) -> int:
        if self.draft.source_index is not None:
            return self.draft.source_index
        return self.position


@dataclass(slots=True)
class DraftBatch:
    """Container for all drafts of a single ingestion call.

    Phases mutate entries in place; rejected entries stay in the list with
    ``accepted`` cleared so positions remain stable.
    """

    entries: list[DraftEntry] = field(default_factory=list[DraftEntry])

    @classmethod
    def from_drafts(cls, drafts: Iterable[ClientDraft]) -> DraftBatch:
        return cls(
            entries=[
                DraftEntry(draft=draft, raw_name=draft.name, position=position)
                for position, draft in enumerate(drafts)
            ]
        )

    def accepted(self) -> list[DraftEntry]:
        return [entry for entry in self.entries if entry.accepted]

    def accepted_drafts(self) -> tuple[ClientDraft, ...]:
        return tuple(entry.draft for entry in self.entries if entry.accepted)


@dataclass(slots=True)
class PipelineContext:
    """Mutable context shared across pipeline phases."""

    source: IngestionSource = IngestionSource.API
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REPORT
    errors: list[str] = field(default_factory=list[str])
    notices: list[str] = field(default_factory=list[str])
    normalized_count: int = 0
    rejected_count: int = 0
    duplicate_names: list[str] = field(default_factory=list[str])

    def describe(self, entry: DraftEntry, message: str) -> str:
        """Render a per-client message with the location wording of the source."""

        if self.source is IngestionSource.CSV:
            return f'Client "{entry.raw_name}" at row {entry.row_index + 2}: {message}'
        if self.source is IngestionSource.JSON:
            return f'Client "{entry.raw_name}" at index {entry.row_index}: {message}'
        return f'Client "{entry.raw_name}": {message}'
