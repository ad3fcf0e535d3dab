# liftlog/services/metrics.py
"""Personal-record detection over user_exercise_metrics rows.

``merge_metrics`` is pure: it takes copies of the stored rows and the new
efforts and returns the PR verdicts plus the rows that changed. Persisting
those rows is the repository's job.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Literal, Mapping, Sequence

from liftlog.services.blocks import PerformanceTuple

E1RMAction = Literal["calculated", "updated", "inserted", "kept_existing"]

METRIC_FIELDS = (
    "estimated_1rm",
    "best_weight",
    "best_reps",
    "best_volume",
    "best_volume_weight",
    "best_volume_reps",
)


@dataclass
class MetricsSnapshot:
    exercise_id: str
    estimated_1rm: float | None = None
    best_weight: float | None = None
    best_reps: int | None = None
    best_volume: float | None = None
    best_volume_weight: float | None = None
    best_volume_reps: int | None = None

    @classmethod
    def from_row(cls, row) -> MetricsSnapshot:
        return cls(exercise_id=row.exercise_id, **{name: getattr(row, name) for name in METRIC_FIELDS})

    def values(self) -> dict[str, float | int | None]:
        return {name: getattr(self, name) for name in METRIC_FIELDS}


@dataclass(frozen=True)
class PRResult:
    exercise_id: str
    weight_pr: bool
    volume_pr: bool
    weight: float
    reps: int
    volume: float


@dataclass(frozen=True)
class E1RMOutcome:
    calculated: float
    stored: float
    action: E1RMAction
    is_new_pr: bool


@dataclass(frozen=True)
class MergeResult:
    results: list[PRResult]
    e1rm: E1RMOutcome
    rows: list[MetricsSnapshot] = field(default_factory=list)

    @property
    def any_weight_pr(self) -> bool:
        return any(r.weight_pr for r in self.results)

    @property
    def any_volume_pr(self) -> bool:
        return any(r.volume_pr for r in self.results)


def is_weight_pr(row: MetricsSnapshot, t: PerformanceTuple) -> bool:
    if row.best_weight is None:
        return True
    if t.weight > row.best_weight:
        return True
    return t.weight == row.best_weight and t.reps > (row.best_reps or 0)


def is_volume_pr(row: MetricsSnapshot, t: PerformanceTuple) -> bool:
    return row.best_volume is None or t.volume > row.best_volume


def merge_metrics(
    existing: Mapping[str, MetricsSnapshot],
    tuples: Sequence[PerformanceTuple],
    primary: PerformanceTuple | None = None,
    e1rm: float = 0.0,
) -> MergeResult:
    """Compare new efforts with stored bests.

    Efforts on the same exercise are applied in order against the running
    row, so the second of two efforts competes with the first. Only the
    primary effort's e1RM is considered for ``estimated_1rm``.
    """
    working: dict[str, MetricsSnapshot] = {}
    changed: dict[str, MetricsSnapshot] = {}

    def row_for(exercise_id: str) -> MetricsSnapshot:
        if exercise_id not in working:
            stored = existing.get(exercise_id)
            working[exercise_id] = replace(stored) if stored else MetricsSnapshot(exercise_id)
        return working[exercise_id]

    results: list[PRResult] = []
    for t in tuples:
        row = row_for(t.exercise_id)
        weight_pr = is_weight_pr(row, t)
        volume_pr = is_volume_pr(row, t)
        if weight_pr:
            row.best_weight = t.weight
            row.best_reps = t.reps
        if volume_pr:
            row.best_volume = t.volume
            row.best_volume_weight = t.weight
            row.best_volume_reps = t.reps
        if weight_pr or volume_pr:
            changed[t.exercise_id] = row
        results.append(PRResult(t.exercise_id, weight_pr, volume_pr, t.weight, t.reps, t.volume))

    outcome = E1RMOutcome(calculated=e1rm, stored=e1rm, action="calculated", is_new_pr=False)
    if primary is not None and e1rm > 0:
        row = row_for(primary.exercise_id)
        stored = row.estimated_1rm
        if stored is None:
            row.estimated_1rm = e1rm
            changed[primary.exercise_id] = row
            outcome = E1RMOutcome(e1rm, e1rm, "inserted", True)
        elif e1rm > stored:
            row.estimated_1rm = e1rm
            changed[primary.exercise_id] = row
            outcome = E1RMOutcome(e1rm, e1rm, "updated", True)
        else:
            outcome = E1RMOutcome(e1rm, stored, "kept_existing", False)

    return MergeResult(results=results, e1rm=outcome, rows=list(changed.values()))
