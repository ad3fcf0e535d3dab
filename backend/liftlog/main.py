# liftlog/main.py
import time
import logging
import uuid
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from liftlog.routers.auth import router as auth_router
from liftlog.routers.set_logs import router as set_logs_router
from liftlog.routers.workout_logs import router as workout_logs_router
from liftlog.routers.metrics import router as metrics_router
from liftlog.db import SessionLocal  # for healthz DB check
from liftlog.settings import get_settings

log = logging.getLogger("uvicorn")

app = FastAPI(
    title="LiftLog API",
    openapi_tags=[
        {"name": "auth", "description": "Registration & login"},
        {"name": "sets", "description": "Completed sets for every block type"},
        {"name": "workout-logs", "description": "Workout sessions the sets belong to"},
        {"name": "metrics", "description": "Estimated 1RM and personal records"},
    ],
)


# CORS (relax for local dev; tighten origins in prod via env)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().ALLOW_ORIGINS.split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = req_id
    log.info("rid=%s %s %s -> %s in %.1fms",
             req_id, request.method, request.url.path, response.status_code, duration_ms)
    return response

@app.exception_handler(RequestValidationError)
async def validation_error_as_400(request: Request, exc: RequestValidationError):
    # malformed payloads are client errors like every other validation failure
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": {"error": "Invalid request", "details": jsonable_encoder(exc.errors())}},
    )

@app.get("/")
def root():
    return {"ok": True, "name": "LiftLog API"}

@app.get("/ping")
def ping():
    return {"pong": True}

@app.get("/healthz")
def healthz():
    # Quick DB sanity check
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as e:
        return {"status": "degraded", "error": str(e)}

@app.get("/version")
def version():
    return {"version": get_settings().API_VERSION}

# Routers
app.include_router(auth_router)
app.include_router(set_logs_router)
app.include_router(workout_logs_router)
app.include_router(metrics_router)
