from __future__ import annotations
import math
import re
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# canonical 8-4-4-4-12 form only; braces/urn/compact forms are not accepted
UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")

NotesStr = Annotated[str, Field(strip_whitespace=True, max_length=500)]

# ids are 32-bit serial keys
MAX_ID = 2**31 - 1


def parse_number(value: Any) -> float | None:
    """Lenient float coercion: anything unparseable is treated as absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            num = float(text)
        except ValueError:
            return None
    return num if math.isfinite(num) else None


def parse_int(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    num = parse_number(value)
    return int(num) if num is not None else None


def parse_ref(value: Any) -> str | None:
    """Identifier-ish values (exercise, block ids) as trimmed strings."""
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    text = str(value).strip()
    return text or None


def parse_uuid(value: Any) -> str | None:
    if not isinstance(value, str) or not UUID_RE.match(value.strip()):
        return None
    return value.strip().lower()


class SetLogCreate(BaseModel):
    """Inbound set-completion event.

    Only the fields shared by every block type are declared; block-specific
    fields stay in ``model_extra`` and are read through ``FieldReader``.
    """
    model_config = ConfigDict(extra="allow")

    block_type: str | None = None
    client_id: int | None = None
    block_id: str | None = None
    workout_assignment_id: int | None = None
    workout_log_id: int | None = None
    session_id: str | None = None
    template_exercise_id: str | None = None
    notes: NotesStr | None = None

    @field_validator("block_type", mode="before")
    @classmethod
    def tag_as_text(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("client_id", "workout_assignment_id", "workout_log_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: Any) -> int | None:
        ident = parse_int(v)
        if ident is not None and not 1 <= ident <= MAX_ID:
            raise ValueError(f"id must be between 1 and {MAX_ID}")
        return ident

    @field_validator("block_id", "template_exercise_id", mode="before")
    @classmethod
    def coerce_refs(cls, v: Any) -> str | None:
        return parse_ref(v)

    @field_validator("session_id", mode="before")
    @classmethod
    def drop_malformed_session(cls, v: Any) -> str | None:
        # a bad session id only loses the linkage, it never fails the request
        return parse_uuid(v)

    @field_validator("notes", mode="before")
    @classmethod
    def notes_as_text(cls, v: Any) -> str | None:
        return None if v is None else str(v)


class E1RMRead(BaseModel):
    calculated: float
    stored: float
    action: Literal["calculated", "updated", "inserted", "kept_existing"]
    is_new_pr: bool
    warning: str | None = None


class PRResultRead(BaseModel):
    exercise_id: str
    weight_pr: bool
    volume_pr: bool
    weight: float
    reps: int
    volume: float


class PRRead(BaseModel):
    any_weight_pr: bool
    any_volume_pr: bool
    results: list[PRResultRead]
    message: str
    warning: str | None = None


class SetLogResponse(BaseModel):
    success: bool
    set_log_id: int
    workout_log_id: int
    block_type: str
    set_logged: dict[str, Any]
    e1rm: E1RMRead
    pr: PRRead
    message: str


class SetLogRead(BaseModel):
    id: int
    workout_log_id: int
    client_id: int
    block_id: str
    block_type: str
    completed_at: datetime
    template_exercise_id: str | None = None
    notes: str | None = None
    exercise_id: str | None = None
    weight: float | None = None
    reps: int | None = None
    set_number: int | None = None
    details: dict[str, Any] = {}

    model_config = {"from_attributes": True}
