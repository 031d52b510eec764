from __future__ import annotations

from dataclasses import dataclass

from clientingest.domain.ingest_pipeline.context import DraftBatch, PipelineContext
from clientingest.domain.ingest_pipeline.orchestrator import IngestionPipeline, PipelinePhase
from clientingest.domain.ingest_pipeline.runner import default_pipeline


@dataclass(slots=True)
class _RecordingPhase(PipelinePhase):
    name: str
    calls: list[str]

    def run(self, batch: DraftBatch, *, context: PipelineContext) -> None:
        _ = (batch, context)
        self.calls.append(self.name)


def test_pipeline_runs_phases_in_order() -> None:
    calls: list[str] = []
    first = _RecordingPhase(name="first", calls=calls)
    second = _RecordingPhase(name="second", calls=calls)
    pipeline = IngestionPipeline(phases=(first, second))

    pipeline.run(DraftBatch(), context=PipelineContext())

    assert calls == ["first", "second"]


def test_with_phase_and_extend_return_new_pipelines() -> None:
    calls: list[str] = []
    base = IngestionPipeline(phases=(_RecordingPhase(name="a", calls=calls),))

    extended = base.with_phase(_RecordingPhase(name="b", calls=calls)).extend(
        [_RecordingPhase(name="c", calls=calls)]
    )
    extended.run(DraftBatch())

    assert len(base.phases) == 1
    assert calls == ["a", "b", "c"]


def test_default_pipeline_order() -> None:
    names = [phase.name for phase in default_pipeline().phases]

    assert names == ["normalization", "validation", "duplicate-check"]
