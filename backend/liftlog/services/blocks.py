# liftlog/services/blocks.py
"""Block payloads: one frozen dataclass per block type.

Each payload knows how to validate itself from the event fields, which
values go into the shared set-log columns, which go into ``details``, the
single *primary* effort used for e1RM (only for block types with one
dominant weighted effort) and the full list of efforts used for PR checks.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, ClassVar

from liftlog.errors import MissingField, UnsupportedBlockType
from liftlog.services.normalize import BlockType, FieldReader

Candidate = tuple[str | None, float | None, int | None]


@dataclass(frozen=True)
class PerformanceTuple:
    exercise_id: str
    weight: float
    reps: int

    @property
    def volume(self) -> float:
        return self.weight * self.reps


def performance(exercise_id: str | None, weight: float | None, reps: int | None) -> PerformanceTuple | None:
    """Build a tuple, or None when the effort has no exercise or no positive weight/reps."""
    if not exercise_id or weight is None or reps is None:
        return None
    if weight <= 0 or reps <= 0:
        return None
    return PerformanceTuple(exercise_id=exercise_id, weight=float(weight), reps=int(reps))


def _require(f: FieldReader, value, name: str):
    if value is None:
        raise MissingField(f.path(name))
    return value


def _require_positive(f: FieldReader, value, name: str):
    if value is None or value <= 0:
        raise MissingField(f.path(name), f"{f.path(name)} must be a positive number")
    return value


@dataclass(frozen=True)
class BlockPayload:
    block_type: ClassVar[BlockType]
    # one dominant weighted effort -> primary tuple feeds the e1RM estimate
    tracks_e1rm: ClassVar[bool] = False

    @classmethod
    def from_fields(cls, f: FieldReader) -> BlockPayload:
        raise NotImplementedError

    def columns(self) -> dict[str, Any]:
        """Values for the shared exercise_id / weight / reps / set_number columns."""
        return {}

    def details(self) -> dict[str, Any]:
        return {}

    def record(self) -> dict[str, Any]:
        return {**self.columns(), **self.details()}

    def candidates(self) -> list[Candidate]:
        return []

    def primary_candidate(self) -> Candidate | None:
        return None

    def performances(self) -> list[PerformanceTuple]:
        found = (performance(*c) for c in self.candidates())
        return [p for p in found if p is not None]

    def primary(self) -> PerformanceTuple | None:
        if not self.tracks_e1rm:
            return None
        candidate = self.primary_candidate()
        return performance(*candidate) if candidate else None


@dataclass(frozen=True)
class StraightSet(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.straight_set
    tracks_e1rm: ClassVar[bool] = True

    exercise_id: str
    weight: float
    reps: int
    set_number: int = 1

    @classmethod
    def from_fields(cls, f: FieldReader) -> StraightSet:
        return cls(
            exercise_id=_require(f, f.ref("exercise_id"), "exercise_id"),
            weight=_require_positive(f, f.number("weight"), "weight"),
            reps=_require_positive(f, f.integer("reps"), "reps"),
            set_number=f.integer("set_number") or 1,
        )

    def columns(self) -> dict[str, Any]:
        return {"exercise_id": self.exercise_id, "weight": self.weight, "reps": self.reps,
                "set_number": self.set_number}

    def candidates(self) -> list[Candidate]:
        return [(self.exercise_id, self.weight, self.reps)]

    def primary_candidate(self) -> Candidate:
        return (self.exercise_id, self.weight, self.reps)


@dataclass(frozen=True)
class Superset(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.superset
    tracks_e1rm: ClassVar[bool] = True

    exercise_a_id: str
    exercise_b_id: str
    weight_a: float | None = None
    reps_a: int | None = None
    weight_b: float | None = None
    reps_b: int | None = None
    set_number: int = 1

    @classmethod
    def from_fields(cls, f: FieldReader) -> Superset:
        return cls(
            exercise_a_id=_require(f, f.ref("superset_exercise_a_id"), "superset_exercise_a_id"),
            exercise_b_id=_require(f, f.ref("superset_exercise_b_id"), "superset_exercise_b_id"),
            weight_a=f.number("superset_weight_a"),
            reps_a=f.integer("superset_reps_a"),
            weight_b=f.number("superset_weight_b"),
            reps_b=f.integer("superset_reps_b"),
            set_number=f.integer("set_number") or 1,
        )

    def columns(self) -> dict[str, Any]:
        return {"set_number": self.set_number}

    def details(self) -> dict[str, Any]:
        return {
            "superset_exercise_a_id": self.exercise_a_id,
            "superset_weight_a": self.weight_a,
            "superset_reps_a": self.reps_a,
            "superset_exercise_b_id": self.exercise_b_id,
            "superset_weight_b": self.weight_b,
            "superset_reps_b": self.reps_b,
        }

    def candidates(self) -> list[Candidate]:
        return [(self.exercise_a_id, self.weight_a, self.reps_a),
                (self.exercise_b_id, self.weight_b, self.reps_b)]

    def primary_candidate(self) -> Candidate:
        return (self.exercise_a_id, self.weight_a, self.reps_a)


@dataclass(frozen=True)
class GiantSetEntry:
    exercise_id: str
    weight: float | None = None
    reps: int | None = None


@dataclass(frozen=True)
class GiantSet(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.giant_set

    exercises: tuple[GiantSetEntry, ...]
    round_number: int = 1

    @classmethod
    def from_fields(cls, f: FieldReader) -> GiantSet:
        entries = f.entries("giant_set_exercises")
        if not entries:
            raise MissingField(f.path("giant_set_exercises"), "at least one exercise is required")
        exercises = tuple(
            GiantSetEntry(
                exercise_id=_require(e, e.ref("exercise_id"), "exercise_id"),
                weight=e.number("weight"),
                reps=e.integer("reps"),
            )
            for e in entries
        )
        return cls(exercises=exercises, round_number=f.integer("round_number") or 1)

    def details(self) -> dict[str, Any]:
        return {
            "round_number": self.round_number,
            "giant_set_exercises": [
                {"exercise_id": e.exercise_id, "weight": e.weight, "reps": e.reps}
                for e in self.exercises
            ],
        }

    def candidates(self) -> list[Candidate]:
        return [(e.exercise_id, e.weight, e.reps) for e in self.exercises]


@dataclass(frozen=True)
class Amrap(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.amrap

    total_reps: int
    exercise_id: str | None = None
    weight: float | None = None
    duration_seconds: int | None = None
    target_reps: int | None = None

    @classmethod
    def from_fields(cls, f: FieldReader) -> Amrap:
        return cls(
            total_reps=_require(f, f.integer("amrap_total_reps"), "amrap_total_reps"),
            exercise_id=f.ref("exercise_id"),
            weight=f.number("weight"),
            duration_seconds=f.integer("amrap_duration_seconds"),
            target_reps=f.integer("amrap_target_reps") or None,
        )

    def columns(self) -> dict[str, Any]:
        return {"exercise_id": self.exercise_id, "weight": self.weight, "reps": self.total_reps}

    def details(self) -> dict[str, Any]:
        return {
            "amrap_total_reps": self.total_reps,
            "amrap_duration_seconds": self.duration_seconds,
            "amrap_target_reps": self.target_reps,
        }

    def candidates(self) -> list[Candidate]:
        reps = self.total_reps if self.total_reps > 0 else self.target_reps
        return [(self.exercise_id, self.weight, reps)]


@dataclass(frozen=True)
class DropSet(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.dropset
    tracks_e1rm: ClassVar[bool] = True

    exercise_id: str
    initial_weight: float
    initial_reps: int
    final_weight: float | None = None
    final_reps: int | None = None
    percentage: float | None = None
    set_number: int = 1

    @classmethod
    def from_fields(cls, f: FieldReader) -> DropSet:
        return cls(
            exercise_id=_require(f, f.ref("exercise_id"), "exercise_id"),
            initial_weight=_require_positive(f, f.number("dropset_initial_weight"), "dropset_initial_weight"),
            initial_reps=_require_positive(f, f.integer("dropset_initial_reps"), "dropset_initial_reps"),
            final_weight=f.number("dropset_final_weight"),
            final_reps=f.integer("dropset_final_reps"),
            percentage=f.number("dropset_percentage"),
            set_number=f.integer("set_number") or 1,
        )

    def columns(self) -> dict[str, Any]:
        return {"exercise_id": self.exercise_id, "weight": self.initial_weight,
                "reps": self.initial_reps, "set_number": self.set_number}

    def details(self) -> dict[str, Any]:
        return {
            "dropset_initial_weight": self.initial_weight,
            "dropset_initial_reps": self.initial_reps,
            "dropset_final_weight": self.final_weight,
            "dropset_final_reps": self.final_reps,
            "dropset_percentage": self.percentage,
        }

    def candidates(self) -> list[Candidate]:
        return [(self.exercise_id, self.initial_weight, self.initial_reps)]

    def primary_candidate(self) -> Candidate:
        return (self.exercise_id, self.initial_weight, self.initial_reps)


@dataclass(frozen=True)
class ClusterSet(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.cluster_set
    tracks_e1rm: ClassVar[bool] = True

    exercise_id: str
    weight: float
    reps: int
    cluster_number: int = 1
    set_number: int = 1

    @classmethod
    def from_fields(cls, f: FieldReader) -> ClusterSet:
        return cls(
            exercise_id=_require(f, f.ref("exercise_id"), "exercise_id"),
            weight=_require_positive(f, f.number("weight"), "weight"),
            reps=_require_positive(f, f.integer("reps"), "reps"),
            cluster_number=f.integer("cluster_number") or 1,
            set_number=f.integer("set_number") or 1,
        )

    def columns(self) -> dict[str, Any]:
        return {"exercise_id": self.exercise_id, "weight": self.weight, "reps": self.reps,
                "set_number": self.set_number}

    def details(self) -> dict[str, Any]:
        return {"cluster_number": self.cluster_number}

    def candidates(self) -> list[Candidate]:
        return [(self.exercise_id, self.weight, self.reps)]

    def primary_candidate(self) -> Candidate:
        return (self.exercise_id, self.weight, self.reps)


@dataclass(frozen=True)
class RestPause(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.rest_pause
    tracks_e1rm: ClassVar[bool] = True

    exercise_id: str
    initial_weight: float
    initial_reps: int
    reps_after: int | None = None
    rest_seconds: int | None = None
    max_rest_pauses: int | None = None
    rest_pause_number: int = 1
    set_number: int = 1

    @classmethod
    def from_fields(cls, f: FieldReader) -> RestPause:
        return cls(
            exercise_id=_require(f, f.ref("exercise_id"), "exercise_id"),
            initial_weight=_require_positive(f, f.number("rest_pause_initial_weight"), "rest_pause_initial_weight"),
            initial_reps=_require_positive(f, f.integer("rest_pause_initial_reps"), "rest_pause_initial_reps"),
            reps_after=f.integer("rest_pause_reps_after"),
            rest_seconds=f.integer("rest_pause_duration"),
            max_rest_pauses=f.integer("max_rest_pauses"),
            rest_pause_number=f.integer("rest_pause_number") or 1,
            set_number=f.integer("set_number") or 1,
        )

    def columns(self) -> dict[str, Any]:
        # reps column counts the whole set, both sides of the pause
        return {"exercise_id": self.exercise_id, "weight": self.initial_weight,
                "reps": self.initial_reps + (self.reps_after or 0), "set_number": self.set_number}

    def details(self) -> dict[str, Any]:
        return {
            "rest_pause_initial_weight": self.initial_weight,
            "rest_pause_initial_reps": self.initial_reps,
            "rest_pause_reps_after": self.reps_after,
            "rest_pause_duration": self.rest_seconds,
            "max_rest_pauses": self.max_rest_pauses,
            "rest_pause_number": self.rest_pause_number,
        }

    def candidates(self) -> list[Candidate]:
        return [(self.exercise_id, self.initial_weight, self.initial_reps)]

    def primary_candidate(self) -> Candidate:
        return (self.exercise_id, self.initial_weight, self.initial_reps)


@dataclass(frozen=True)
class PreExhaust(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.preexhaust

    isolation_exercise_id: str
    compound_exercise_id: str
    isolation_weight: float | None = None
    isolation_reps: int | None = None
    compound_weight: float | None = None
    compound_reps: int | None = None
    set_number: int = 1

    @classmethod
    def from_fields(cls, f: FieldReader) -> PreExhaust:
        return cls(
            isolation_exercise_id=_require(
                f, f.ref("preexhaust_isolation_exercise_id"), "preexhaust_isolation_exercise_id"),
            compound_exercise_id=_require(
                f, f.ref("preexhaust_compound_exercise_id"), "preexhaust_compound_exercise_id"),
            isolation_weight=f.number("preexhaust_isolation_weight"),
            isolation_reps=f.integer("preexhaust_isolation_reps"),
            compound_weight=f.number("preexhaust_compound_weight"),
            compound_reps=f.integer("preexhaust_compound_reps"),
            set_number=f.integer("set_number") or 1,
        )

    def columns(self) -> dict[str, Any]:
        return {"set_number": self.set_number}

    def details(self) -> dict[str, Any]:
        return {
            "preexhaust_isolation_exercise_id": self.isolation_exercise_id,
            "preexhaust_isolation_weight": self.isolation_weight,
            "preexhaust_isolation_reps": self.isolation_reps,
            "preexhaust_compound_exercise_id": self.compound_exercise_id,
            "preexhaust_compound_weight": self.compound_weight,
            "preexhaust_compound_reps": self.compound_reps,
        }

    def candidates(self) -> list[Candidate]:
        return [(self.isolation_exercise_id, self.isolation_weight, self.isolation_reps),
                (self.compound_exercise_id, self.compound_weight, self.compound_reps)]


@dataclass(frozen=True)
class Emom(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.emom

    minute_number: int
    reps_this_minute: int
    exercise_id: str | None = None
    weight: float | None = None
    total_duration_sec: int | None = None

    @classmethod
    def from_fields(cls, f: FieldReader) -> Emom:
        return cls(
            minute_number=_require(f, f.integer("emom_minute_number"), "emom_minute_number"),
            reps_this_minute=_require(f, f.integer("emom_total_reps_this_min"), "emom_total_reps_this_min"),
            exercise_id=f.ref("exercise_id"),
            weight=f.number("weight"),
            total_duration_sec=f.integer("emom_total_duration_sec"),
        )

    def columns(self) -> dict[str, Any]:
        return {"exercise_id": self.exercise_id, "weight": self.weight, "reps": self.reps_this_minute}

    def details(self) -> dict[str, Any]:
        return {
            "emom_minute_number": self.minute_number,
            "emom_total_reps_this_min": self.reps_this_minute,
            "emom_total_duration_sec": self.total_duration_sec,
        }

    def candidates(self) -> list[Candidate]:
        return [(self.exercise_id, self.weight, self.reps_this_minute)]


@dataclass(frozen=True)
class Tabata(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.tabata

    rounds_completed: int
    exercise_id: str | None = None
    total_duration_sec: int | None = None

    @classmethod
    def from_fields(cls, f: FieldReader) -> Tabata:
        return cls(
            rounds_completed=_require(f, f.integer("tabata_rounds_completed"), "tabata_rounds_completed"),
            exercise_id=f.ref("exercise_id"),
            total_duration_sec=f.integer("tabata_total_duration_sec"),
        )

    def columns(self) -> dict[str, Any]:
        return {"exercise_id": self.exercise_id}

    def details(self) -> dict[str, Any]:
        return {
            "tabata_rounds_completed": self.rounds_completed,
            "tabata_total_duration_sec": self.total_duration_sec,
        }


@dataclass(frozen=True)
class ForTime(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.fortime

    time_taken_sec: int
    exercise_id: str | None = None
    weight: float | None = None
    total_reps: int | None = None
    time_cap_sec: int | None = None
    target_reps: int | None = None

    @classmethod
    def from_fields(cls, f: FieldReader) -> ForTime:
        return cls(
            time_taken_sec=_require(f, f.integer("fortime_time_taken_sec"), "fortime_time_taken_sec"),
            exercise_id=f.ref("exercise_id"),
            weight=f.number("weight"),
            total_reps=f.integer("fortime_total_reps"),
            time_cap_sec=f.integer("fortime_time_cap_sec"),
            target_reps=f.integer("fortime_target_reps") or None,
        )

    def columns(self) -> dict[str, Any]:
        return {"exercise_id": self.exercise_id, "weight": self.weight, "reps": self.total_reps}

    def details(self) -> dict[str, Any]:
        return {
            "fortime_total_reps": self.total_reps,
            "fortime_time_taken_sec": self.time_taken_sec,
            "fortime_time_cap_sec": self.time_cap_sec,
            "fortime_target_reps": self.target_reps,
        }

    def candidates(self) -> list[Candidate]:
        reps = self.total_reps if self.total_reps and self.total_reps > 0 else self.target_reps
        return [(self.exercise_id, self.weight, reps)]


@dataclass(frozen=True)
class HRSet(BlockPayload):
    block_type: ClassVar[BlockType] = BlockType.hr_sets

    exercise_id: str
    hr_zone: int | None = None
    hr_percentage_min: float | None = None
    hr_percentage_max: float | None = None
    average_hr_percentage: float | None = None
    is_intervals: bool | None = None
    duration_seconds: int | None = None
    work_duration_seconds: int | None = None
    rest_duration_seconds: int | None = None
    target_rounds: int | None = None
    rounds_completed: int | None = None
    distance_meters: float | None = None

    @classmethod
    def from_fields(cls, f: FieldReader) -> HRSet:
        return cls(
            exercise_id=_require(f, f.ref("exercise_id"), "exercise_id"),
            hr_zone=f.integer("hr_zone"),
            hr_percentage_min=f.number("hr_percentage_min"),
            hr_percentage_max=f.number("hr_percentage_max"),
            average_hr_percentage=f.number("hr_average_percentage"),
            is_intervals=f.flag("hr_is_intervals"),
            duration_seconds=f.integer("hr_duration_seconds"),
            work_duration_seconds=f.integer("hr_work_duration_seconds"),
            rest_duration_seconds=f.integer("hr_rest_duration_seconds"),
            target_rounds=f.integer("hr_target_rounds"),
            rounds_completed=f.integer("hr_rounds_completed"),
            distance_meters=f.number("hr_distance_meters"),
        )

    def columns(self) -> dict[str, Any]:
        return {"exercise_id": self.exercise_id}

    def details(self) -> dict[str, Any]:
        return {
            "hr_zone": self.hr_zone,
            "hr_percentage_min": self.hr_percentage_min,
            "hr_percentage_max": self.hr_percentage_max,
            "hr_average_percentage": self.average_hr_percentage,
            "hr_is_intervals": self.is_intervals,
            "hr_duration_seconds": self.duration_seconds,
            "hr_work_duration_seconds": self.work_duration_seconds,
            "hr_rest_duration_seconds": self.rest_duration_seconds,
            "hr_target_rounds": self.target_rounds,
            "hr_rounds_completed": self.rounds_completed,
            "hr_distance_meters": self.distance_meters,
        }


BLOCK_PAYLOADS: dict[BlockType, type[BlockPayload]] = {
    cls.block_type: cls
    for cls in (StraightSet, Superset, GiantSet, Amrap, DropSet, ClusterSet,
                RestPause, PreExhaust, Emom, Tabata, ForTime, HRSet)
}

_unregistered = sorted(t.value for t in BlockType if t not in BLOCK_PAYLOADS)
if _unregistered:
    raise RuntimeError(f"no payload registered for block types: {', '.join(_unregistered)}")

E1RM_BLOCK_TYPES = frozenset(t for t, cls in BLOCK_PAYLOADS.items() if cls.tracks_e1rm)


def build_payload(block_type: BlockType, fields: FieldReader) -> BlockPayload:
    try:
        cls = BLOCK_PAYLOADS[BlockType(block_type)]
    except (KeyError, ValueError):
        raise UnsupportedBlockType(block_type, [t.value for t in BlockType]) from None
    return cls.from_fields(fields)
