# liftlog/services/normalize.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

import pydantic

from liftlog.errors import MissingField, UnsupportedBlockType, ValidationError
from liftlog.schemas.set_log import SetLogCreate, parse_int, parse_number, parse_ref


class BlockType(str, Enum):
    straight_set = "straight_set"
    superset = "superset"
    giant_set = "giant_set"
    amrap = "amrap"
    dropset = "dropset"
    cluster_set = "cluster_set"
    rest_pause = "rest_pause"
    preexhaust = "preexhaust"
    emom = "emom"
    tabata = "tabata"
    fortime = "fortime"
    hr_sets = "hr_sets"


DEFAULT_BLOCK_TYPE = BlockType.straight_set


class FieldReader:
    """Typed, lenient access to the block-specific part of an event."""

    def __init__(self, raw: Mapping[str, Any] | None = None, *, prefix: str = ""):
        self._raw = dict(raw or {})
        self.prefix = prefix

    def __contains__(self, name: str) -> bool:
        return self._raw.get(name) is not None

    def path(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def number(self, name: str) -> float | None:
        return parse_number(self._raw.get(name))

    def integer(self, name: str) -> int | None:
        return parse_int(self._raw.get(name))

    def ref(self, name: str) -> str | None:
        return parse_ref(self._raw.get(name))

    def flag(self, name: str) -> bool | None:
        value = self._raw.get(name)
        if value is None:
            return None
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    def entries(self, name: str) -> list[FieldReader] | None:
        """Nested list of records, e.g. ``giant_set_exercises``. Non-dict items are skipped."""
        value = self._raw.get(name)
        if not isinstance(value, list):
            return None
        return [
            FieldReader(item, prefix=f"{self.prefix}{name}[{i}].")
            for i, item in enumerate(value)
            if isinstance(item, dict)
        ]


@dataclass(frozen=True)
class SetCompletionEvent:
    block_type: BlockType
    block_id: str
    client_id: int | None
    workout_assignment_id: int | None
    workout_log_id: int | None
    session_id: str | None
    template_exercise_id: str | None
    notes: str | None
    fields: FieldReader


def resolve_block_type(tag: str | None) -> BlockType:
    if tag is None:
        return DEFAULT_BLOCK_TYPE
    try:
        return BlockType(tag)
    except ValueError:
        raise UnsupportedBlockType(tag, [t.value for t in BlockType]) from None


def normalize_event(body: Any) -> SetCompletionEvent:
    if not isinstance(body, Mapping):
        raise ValidationError("request body must be a JSON object", error="Invalid JSON in request body")
    try:
        payload = SetLogCreate.model_validate(dict(body))
    except pydantic.ValidationError as e:
        raise ValidationError(e.errors(include_url=False, include_context=False)) from e

    block_type = resolve_block_type(payload.block_type)
    if payload.block_id is None:
        raise MissingField("block_id")

    return SetCompletionEvent(
        block_type=block_type,
        block_id=payload.block_id,
        client_id=payload.client_id,
        workout_assignment_id=payload.workout_assignment_id,
        workout_log_id=payload.workout_log_id,
        session_id=payload.session_id,
        template_exercise_id=payload.template_exercise_id,
        notes=payload.notes,
        fields=FieldReader(payload.model_extra),
    )
