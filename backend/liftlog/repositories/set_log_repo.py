# liftlog/repositories/set_log_repo.py
from __future__ import annotations
from typing import Any

from sqlalchemy import select

from liftlog.models import WorkoutSetLog
from liftlog.repositories.base import BaseRepository

class SetLogRepository(BaseRepository[WorkoutSetLog]):
    model = WorkoutSetLog

    def list_by_workout_log(self, workout_log_id: int) -> list[WorkoutSetLog]:
        stmt = select(WorkoutSetLog).where(WorkoutSetLog.workout_log_id == workout_log_id)\
                                    .order_by(WorkoutSetLog.id.asc())
        return list(self.db.execute(stmt).scalars().all())

    def insert(self, **values: Any) -> WorkoutSetLog:
        """Append one set record; rows are never updated afterwards."""
        entry = WorkoutSetLog(**values)
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry
