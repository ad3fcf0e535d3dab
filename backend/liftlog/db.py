from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool
from .settings import get_settings

settings = get_settings()

def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    kwargs = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
        # one shared connection so every session sees the same in-memory db
        kwargs["poolclass"] = StaticPool
    return kwargs

# Create the SQLAlchemy engine
engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

# Define the base class that all models should inherit from
class Base(DeclarativeBase):
    pass

# Session factory
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Dependency for FastAPI routes
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
