from typing import Any
from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session
from liftlog.db import get_db
from liftlog.deps.auth import get_current_user
from liftlog.errors import SetLogError
from liftlog.models import User
from liftlog.schemas.set_log import SetLogResponse
from liftlog.services.log_set import log_set

router = APIRouter(tags=["sets"])

@router.post("/log-set", response_model=SetLogResponse, status_code=status.HTTP_201_CREATED)
def log_completed_set(
    body: Any = Body(...),
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    try:
        return log_set(db, current, body)
    except SetLogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
