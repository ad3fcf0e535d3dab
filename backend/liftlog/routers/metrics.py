from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from liftlog.db import get_db
from liftlog.deps.auth import get_current_user, require_role
from liftlog.models import User, UserRole
from liftlog.repositories.metrics_repo import MetricsRepository
from liftlog.schemas.exercise_metrics import ExerciseMetricsRead

router = APIRouter(prefix="/metrics", tags=["metrics"])

@router.get("/exercises", response_model=list[ExerciseMetricsRead])
def list_my_metrics(db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    return MetricsRepository(db).list_by_user(current.id)

@router.get("/exercises/{exercise_id}", response_model=ExerciseMetricsRead)
def get_my_exercise_metrics(
    exercise_id: str,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    row = MetricsRepository(db).get_for_exercise(current.id, exercise_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No metrics for this exercise")
    return row

# Coaches review a client's records
@router.get("/clients/{client_id}/exercises", response_model=list[ExerciseMetricsRead],
            dependencies=[Depends(require_role(UserRole.coach, UserRole.admin))])
def list_client_metrics(client_id: int, db: Session = Depends(get_db)):
    return MetricsRepository(db).list_by_user(client_id)
