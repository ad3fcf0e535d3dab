# liftlog/services/log_set.py
"""POST /log-set flow.

normalize -> resolve workout log -> build payload -> insert set record
-> extract efforts -> locked read / merge / upsert metrics -> response.

Everything up to the set insert fails the request. Metrics are best effort:
a failure there is logged and reported in ``pr.warning``.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from liftlog.errors import Forbidden, MetricsWarning, StorageFailure, db_error_text
from liftlog.models import User, UserRole, WorkoutSetLog
from liftlog.repositories.metrics_repo import MetricsRepository
from liftlog.repositories.set_log_repo import SetLogRepository
from liftlog.schemas.set_log import E1RMRead, PRRead, PRResultRead, SetLogResponse
from liftlog.services.blocks import BlockPayload, build_payload
from liftlog.services.e1rm import estimate_1rm
from liftlog.services.metrics import E1RMOutcome, MergeResult, MetricsSnapshot, merge_metrics
from liftlog.services.normalize import SetCompletionEvent, normalize_event
from liftlog.services.workout_logs import resolve_workout_log
from liftlog.settings import get_settings

log = logging.getLogger("uvicorn")

PRIVILEGED_ROLES = (UserRole.coach, UserRole.admin)


def resolve_client_id(event: SetCompletionEvent, current: User) -> int:
    """Clients log for themselves; coaches and admins may log for anyone."""
    if event.client_id is None or event.client_id == current.id:
        return current.id
    if current.role not in PRIVILEGED_ROLES:
        raise Forbidden("client_id does not match the authenticated user", error="Not allowed for this client")
    return event.client_id


def insert_set_log(db: Session, event: SetCompletionEvent, payload: BlockPayload, *,
                   client_id: int, workout_log_id: int) -> WorkoutSetLog:
    try:
        return SetLogRepository(db).insert(
            client_id=client_id,
            workout_log_id=workout_log_id,
            block_id=event.block_id,
            block_type=event.block_type.value,
            completed_at=datetime.now(timezone.utc),
            template_exercise_id=event.template_exercise_id,
            notes=event.notes,
            details=payload.details(),
            **payload.columns(),
        )
    except SQLAlchemyError as e:
        db.rollback()
        log.error("set log insert failed block_type=%s block_id=%s: %s", event.block_type.value, event.block_id, e)
        raise StorageFailure(db_error_text(e), error="Failed to log set", status_code=400) from e


def record_performance(db: Session, user_id: int, payload: BlockPayload, *, attempts: int = 3) -> MergeResult:
    """Merge the payload's efforts into the user's metrics in one transaction.

    Rows are read with a lock, merged, and written before commit. If another
    request inserts one of the rows first, the unique constraint rejects our
    insert and the whole read-merge-write runs again.
    """
    tuples = payload.performances()
    primary = payload.primary()
    e1rm = estimate_1rm(primary.weight, primary.reps) if primary else 0.0

    exercise_ids = {t.exercise_id for t in tuples}
    if primary:
        exercise_ids.add(primary.exercise_id)
    if not exercise_ids:
        return merge_metrics({}, [], None, e1rm)

    repo = MetricsRepository(db)
    attempt = 0
    while True:
        attempt += 1
        try:
            existing = repo.get_for_update(user_id, exercise_ids)
            result = merge_metrics(
                {ex: MetricsSnapshot.from_row(row) for ex, row in existing.items()},
                tuples, primary, e1rm,
            )
            if result.rows:
                repo.upsert(user_id, result.rows, existing=existing, now=datetime.now(timezone.utc))
            db.commit()
            return result
        except IntegrityError as e:
            db.rollback()
            if attempt >= attempts:
                raise MetricsWarning(f"metrics write conflicted {attempt} times") from e
            log.info("metrics write conflict user=%s attempt=%s; retrying", user_id, attempt)
        except SQLAlchemyError as e:
            db.rollback()
            log.error("metrics write failed user=%s: %s", user_id, e)
            raise MetricsWarning(db_error_text(e)) from e


def _round(value: float) -> float:
    return round(value, 2)


def e1rm_message(outcome: E1RMOutcome, warning: str | None) -> str:
    calculated, stored = _round(outcome.calculated), _round(outcome.stored)
    if warning and calculated > 0:
        return f"Set logged! Estimated 1RM: {calculated:.2f}kg (not saved due to error)"
    if outcome.action == "updated":
        return f"New personal record! {stored:.2f}kg"
    if outcome.action == "kept_existing":
        return f"Good effort! Best remains {stored:.2f}kg"
    if outcome.action == "inserted":
        return f"First set logged! Estimated 1RM: {stored:.2f}kg"
    if calculated > 0:
        return f"Set logged! Estimated 1RM: {calculated:.2f}kg"
    return "Set logged!"


def pr_message(result: MergeResult, warning: str | None) -> str:
    if warning:
        return "Set logged, personal records not updated"
    if not result.results:
        return "No weighted efforts to compare"
    if result.any_weight_pr and result.any_volume_pr:
        return "New weight and volume PR!"
    if result.any_weight_pr:
        return "New weight PR!"
    if result.any_volume_pr:
        return "New volume PR!"
    return "No new personal records"


def set_logged_record(entry: WorkoutSetLog, payload: BlockPayload) -> dict[str, Any]:
    return {
        "id": entry.id,
        "workout_log_id": entry.workout_log_id,
        "client_id": entry.client_id,
        "block_id": entry.block_id,
        "block_type": entry.block_type,
        "completed_at": entry.completed_at.isoformat(),
        "template_exercise_id": entry.template_exercise_id,
        "notes": entry.notes,
        **payload.record(),
    }


def compose_response(entry: WorkoutSetLog, payload: BlockPayload, result: MergeResult,
                     warning: str | None = None) -> SetLogResponse:
    outcome = result.e1rm
    e1rm_warning = None
    if warning and outcome.calculated > 0:
        e1rm_warning = f"e1RM calculated but not saved: {warning}"
    return SetLogResponse(
        success=True,
        set_log_id=entry.id,
        workout_log_id=entry.workout_log_id,
        block_type=entry.block_type,
        set_logged=set_logged_record(entry, payload),
        e1rm=E1RMRead(
            calculated=_round(outcome.calculated),
            stored=_round(outcome.stored),
            action=outcome.action,
            is_new_pr=outcome.is_new_pr,
            warning=e1rm_warning,
        ),
        pr=PRRead(
            any_weight_pr=result.any_weight_pr,
            any_volume_pr=result.any_volume_pr,
            results=[
                PRResultRead(exercise_id=r.exercise_id, weight_pr=r.weight_pr, volume_pr=r.volume_pr,
                             weight=_round(r.weight), reps=r.reps, volume=_round(r.volume))
                for r in result.results
            ],
            message=pr_message(result, warning),
            warning=warning,
        ),
        message=e1rm_message(outcome, warning),
    )


def log_set(db: Session, current: User, body: Any) -> SetLogResponse:
    event = normalize_event(body)
    client_id = resolve_client_id(event, current)
    # variant validation runs before anything is written
    payload = build_payload(event.block_type, event.fields)

    workout_log_id = resolve_workout_log(
        db,
        client_id=client_id,
        workout_assignment_id=event.workout_assignment_id,
        workout_log_id=event.workout_log_id,
        session_id=event.session_id,
    )
    entry = insert_set_log(db, event, payload, client_id=client_id, workout_log_id=workout_log_id)
    log.info("set logged id=%s block_type=%s workout_log=%s client=%s",
             entry.id, entry.block_type, workout_log_id, client_id)

    warning = None
    try:
        result = record_performance(db, client_id, payload, attempts=get_settings().METRICS_WRITE_ATTEMPTS)
    except MetricsWarning as e:
        warning = str(e)
        log.warning("metrics not updated for set %s: %s", entry.id, warning)
        primary = payload.primary()
        e1rm = estimate_1rm(primary.weight, primary.reps) if primary else 0.0
        result = MergeResult(results=[], e1rm=E1RMOutcome(e1rm, e1rm, "calculated", False))
    return compose_response(entry, payload, result, warning)
