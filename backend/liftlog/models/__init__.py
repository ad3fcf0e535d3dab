from liftlog.models.user import User, UserRole
from liftlog.models.workout import WorkoutTemplate, WorkoutAssignment
from liftlog.models.workout_log import WorkoutLog
from liftlog.models.set_log import WorkoutSetLog
from liftlog.models.exercise_metrics import ExerciseMetrics

__all__ = [
    "User",
    "UserRole",
    "WorkoutTemplate",
    "WorkoutAssignment",
    "WorkoutLog",
    "WorkoutSetLog",
    "ExerciseMetrics",
]
