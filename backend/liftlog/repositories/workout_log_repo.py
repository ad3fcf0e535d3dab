# liftlog/repositories/workout_log_repo.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from liftlog.models import WorkoutLog
from liftlog.repositories.base import BaseRepository

class WorkoutLogRepository(BaseRepository[WorkoutLog]):
    model = WorkoutLog

    def _active(self, client_id: int, workout_assignment_id: int):
        return (
            select(WorkoutLog)
            .where(WorkoutLog.client_id == client_id)
            .where(WorkoutLog.workout_assignment_id == workout_assignment_id)
            .where(WorkoutLog.completed_at.is_(None))
            .order_by(WorkoutLog.started_at.desc(), WorkoutLog.id.desc())
            .limit(1)
        )

    # READS
    def find_active(self, client_id: int, workout_assignment_id: int,
                    session_id: str | None = None) -> Optional[WorkoutLog]:
        """Active log for the pair; with a session id only a log linked to it matches."""
        stmt = self._active(client_id, workout_assignment_id)
        if session_id is not None:
            stmt = stmt.where(WorkoutLog.session_id == session_id)
        return self.db.execute(stmt).scalars().first()

    def find_active_unlinked(self, client_id: int, workout_assignment_id: int) -> Optional[WorkoutLog]:
        stmt = self._active(client_id, workout_assignment_id).where(WorkoutLog.session_id.is_(None))
        return self.db.execute(stmt).scalars().first()

    def list_by_client(self, client_id: int, *, limit: int = 50, offset: int = 0) -> list[WorkoutLog]:
        stmt = select(WorkoutLog).where(WorkoutLog.client_id == client_id)\
                                 .order_by(WorkoutLog.started_at.desc(), WorkoutLog.id.desc())\
                                 .limit(limit).offset(offset)
        return list(self.db.execute(stmt).scalars().all())

    # WRITES
    def link_session(self, log: WorkoutLog, session_id: str) -> bool:
        """Claim an unlinked log for the session. False when another session got it first."""
        stmt = (
            update(WorkoutLog)
            .where(WorkoutLog.id == log.id)
            .where(WorkoutLog.session_id.is_(None))
            .values(session_id=session_id)
            .execution_options(synchronize_session=False)
        )
        linked = self.db.execute(stmt).rowcount == 1
        self.db.commit()
        self.db.refresh(log)
        return linked

    def create(self, client_id: int, *, workout_assignment_id: int, session_id: str | None) -> WorkoutLog:
        log = WorkoutLog(
            client_id=client_id,
            workout_assignment_id=workout_assignment_id,
            session_id=session_id,
            started_at=datetime.now(timezone.utc),
            completed_at=None,
        )
        try:
            self.db.add(log)
            self.db.commit()
            self.db.refresh(log)
            return log
        except IntegrityError:
            self.db.rollback()
            # another request created the active log first
            raise ValueError("active_workout_log_exists")

    def complete(self, log: WorkoutLog, *, completed_at: datetime, total_sets: int, total_reps: int,
                 total_weight: float, duration_minutes: int) -> WorkoutLog:
        log.completed_at = completed_at
        log.total_sets_completed = total_sets
        log.total_reps_completed = total_reps
        log.total_weight_lifted = total_weight
        log.total_duration_minutes = duration_minutes
        self.db.commit()
        self.db.refresh(log)
        return log
