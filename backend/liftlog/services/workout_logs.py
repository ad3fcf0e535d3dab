# liftlog/services/workout_logs.py
"""Workout-log resolution and completion.

Resolution order when no explicit log id is given:
  1. active log linked to the session id (any active log without one)
  2. active unlinked log, which gets linked to the session id
  3. a new log; losing a creation race means reusing the winner
The steps are sequential on purpose; each one depends on the previous.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from liftlog.errors import InvalidState, MissingField, NotFound, StorageFailure, db_error_text
from liftlog.models import WorkoutLog
from liftlog.repositories.assignment_repo import AssignmentRepository
from liftlog.repositories.set_log_repo import SetLogRepository
from liftlog.repositories.workout_log_repo import WorkoutLogRepository

log = logging.getLogger("uvicorn")


def check_assignment(db: Session, client_id: int, workout_assignment_id: int) -> None:
    assignment = AssignmentRepository(db).get(workout_assignment_id)
    if assignment is None:
        raise InvalidState(f"workout assignment {workout_assignment_id} not found",
                           error="Workout assignment not found")
    if assignment.client_id != client_id:
        raise InvalidState("workout assignment belongs to another client",
                           error="Workout assignment not found")
    if assignment.template_id is None:
        raise InvalidState("workout assignment has no workout template",
                           error="Workout assignment has no template")


def resolve_workout_log(
    db: Session,
    *,
    client_id: int,
    workout_assignment_id: int | None,
    workout_log_id: int | None = None,
    session_id: str | None = None,
) -> int:
    if workout_log_id is not None:
        return workout_log_id
    if workout_assignment_id is None:
        raise MissingField(
            "workout_assignment_id",
            "workout_assignment_id is required when workout_log_id is not provided",
        )

    repo = WorkoutLogRepository(db)
    try:
        check_assignment(db, client_id, workout_assignment_id)

        existing = repo.find_active(client_id, workout_assignment_id, session_id)
        if existing is not None:
            log.info("workout_log reuse id=%s client=%s assignment=%s",
                     existing.id, client_id, workout_assignment_id)
            return existing.id

        if session_id is not None:
            unlinked = repo.find_active_unlinked(client_id, workout_assignment_id)
            if unlinked is not None:
                if repo.link_session(unlinked, session_id):
                    log.info("workout_log linked id=%s session=%s", unlinked.id, session_id)
                else:
                    log.warning("workout_log link lost to session=%s; reusing id=%s",
                                unlinked.session_id, unlinked.id)
                return unlinked.id

        try:
            created = repo.create(client_id, workout_assignment_id=workout_assignment_id,
                                  session_id=session_id)
        except ValueError:
            winner = repo.find_active(client_id, workout_assignment_id)
            if winner is None:
                raise StorageFailure("active workout log conflict could not be resolved",
                                     error="Failed to create workout log", status_code=400)
            log.warning("workout_log create conflict; reusing id=%s (session=%s)", winner.id, winner.session_id)
            return winner.id
        log.info("workout_log created id=%s client=%s assignment=%s session=%s",
                 created.id, client_id, workout_assignment_id, session_id)
        return created.id
    except SQLAlchemyError as e:
        db.rollback()
        log.error("workout_log resolution failed: %s", e)
        raise StorageFailure(db_error_text(e), error="Failed to resolve workout log", status_code=400) from e


def complete_workout_log(db: Session, workout_log: WorkoutLog, *, duration_minutes: float | None = None,
                         now: datetime | None = None) -> WorkoutLog:
    """Close the log and store totals summed over its own set records only."""
    if workout_log.completed_at is not None:
        raise InvalidState("workout log is already completed", error="Workout log already completed")

    now = now or datetime.now(timezone.utc)
    set_logs = SetLogRepository(db).list_by_workout_log(workout_log.id)
    total_reps = sum(s.reps or 0 for s in set_logs)
    total_weight = sum((s.weight or 0) * (s.reps or 0) for s in set_logs)

    if duration_minutes is not None:
        minutes = round(duration_minutes)
    else:
        started = workout_log.started_at
        if started.tzinfo is None:
            # SQLite hands back naive datetimes
            started = started.replace(tzinfo=timezone.utc)
        minutes = max(0, round((now - started).total_seconds() / 60))

    return WorkoutLogRepository(db).complete(
        workout_log,
        completed_at=now,
        total_sets=len(set_logs),
        total_reps=total_reps,
        total_weight=round(total_weight, 2),
        duration_minutes=minutes,
    )


def get_owned_workout_log(db: Session, workout_log_id: int, *, client_id: int,
                          privileged: bool = False) -> WorkoutLog:
    workout_log = WorkoutLogRepository(db).get(workout_log_id)
    if workout_log is None or (workout_log.client_id != client_id and not privileged):
        raise NotFound(f"workout log {workout_log_id} not found", error="Workout log not found")
    return workout_log
