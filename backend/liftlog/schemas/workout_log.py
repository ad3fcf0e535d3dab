from typing import Annotated
from datetime import datetime
from pydantic import BaseModel, Field

from liftlog.schemas.set_log import SetLogRead

class WorkoutLogComplete(BaseModel):
    # minutes measured by the client; falls back to started_at -> now
    duration_minutes: Annotated[float, Field(ge=0, le=24 * 60)] | None = None

class WorkoutLogRead(BaseModel):
    id: int
    client_id: int
    workout_assignment_id: int
    session_id: str | None = None
    started_at: datetime
    completed_at: datetime | None = None
    total_sets_completed: int | None = None
    total_reps_completed: int | None = None
    total_weight_lifted: float | None = None
    total_duration_minutes: int | None = None

    model_config = {"from_attributes": True}

class WorkoutLogDetail(WorkoutLogRead):
    set_logs: list[SetLogRead] = []
