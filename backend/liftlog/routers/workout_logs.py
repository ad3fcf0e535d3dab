from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session
from liftlog.db import get_db
from liftlog.deps.auth import get_current_user
from liftlog.errors import SetLogError
from liftlog.models import User
from liftlog.repositories.workout_log_repo import WorkoutLogRepository
from liftlog.schemas.set_log import MAX_ID
from liftlog.schemas.workout_log import WorkoutLogComplete, WorkoutLogDetail, WorkoutLogRead
from liftlog.services.log_set import PRIVILEGED_ROLES
from liftlog.services.workout_logs import complete_workout_log, get_owned_workout_log

router = APIRouter(prefix="/workout-logs", tags=["workout-logs"])

@router.get("", response_model=list[WorkoutLogRead])
def list_my_workout_logs(
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    return WorkoutLogRepository(db).list_by_client(current.id, limit=limit, offset=offset)

@router.get("/{workout_log_id}", response_model=WorkoutLogDetail)
def get_workout_log(
    workout_log_id: int = Path(ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    try:
        return get_owned_workout_log(db, workout_log_id, client_id=current.id,
                                     privileged=current.role in PRIVILEGED_ROLES)
    except SetLogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())

@router.post("/{workout_log_id}/complete", response_model=WorkoutLogRead)
def complete(
    workout_log_id: int = Path(ge=1, le=MAX_ID),
    payload: WorkoutLogComplete | None = Body(None),
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    try:
        workout_log = get_owned_workout_log(db, workout_log_id, client_id=current.id,
                                            privileged=current.role in PRIVILEGED_ROLES)
        return complete_workout_log(db, workout_log,
                                    duration_minutes=payload.duration_minutes if payload else None)
    except SetLogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
