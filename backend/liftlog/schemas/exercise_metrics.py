from datetime import datetime
from pydantic import BaseModel

class ExerciseMetricsRead(BaseModel):
    exercise_id: str
    estimated_1rm: float | None = None
    best_weight: float | None = None
    best_reps: int | None = None
    best_volume: float | None = None
    best_volume_weight: float | None = None
    best_volume_reps: int | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}
