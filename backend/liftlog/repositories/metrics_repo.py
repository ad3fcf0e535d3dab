# liftlog/repositories/metrics_repo.py
from __future__ import annotations
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select

from liftlog.models import ExerciseMetrics
from liftlog.repositories.base import BaseRepository
from liftlog.services.metrics import MetricsSnapshot

class MetricsRepository(BaseRepository[ExerciseMetrics]):
    model = ExerciseMetrics

    # READS
    def get_for_exercise(self, user_id: int, exercise_id: str) -> Optional[ExerciseMetrics]:
        stmt = select(ExerciseMetrics).where(ExerciseMetrics.user_id == user_id)\
                                      .where(ExerciseMetrics.exercise_id == exercise_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_by_user(self, user_id: int) -> list[ExerciseMetrics]:
        stmt = select(ExerciseMetrics).where(ExerciseMetrics.user_id == user_id)\
                                      .order_by(ExerciseMetrics.exercise_id.asc())
        return list(self.db.execute(stmt).scalars().all())

    def get_for_update(self, user_id: int, exercise_ids: Iterable[str]) -> dict[str, ExerciseMetrics]:
        """One batched read of the rows about to be merged, locked until commit."""
        ids = sorted(set(exercise_ids))
        if not ids:
            return {}
        stmt = select(ExerciseMetrics).where(ExerciseMetrics.user_id == user_id)\
                                      .where(ExerciseMetrics.exercise_id.in_(ids))\
                                      .with_for_update()
        return {row.exercise_id: row for row in self.db.execute(stmt).scalars().all()}

    # WRITES
    def upsert(self, user_id: int, rows: Iterable[MetricsSnapshot], *,
               existing: dict[str, ExerciseMetrics], now: datetime) -> None:
        """Stage every changed row and flush them together; the caller commits."""
        for snap in rows:
            entity = existing.get(snap.exercise_id)
            if entity is None:
                entity = ExerciseMetrics(user_id=user_id, exercise_id=snap.exercise_id)
                self.db.add(entity)
            for name, value in snap.values().items():
                setattr(entity, name, value)
            entity.updated_at = now
        self.db.flush()
