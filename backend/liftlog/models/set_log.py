from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, ForeignKey, DateTime, String, Float, Text, JSON
from liftlog.db import Base

class WorkoutSetLog(Base):
    """One completed set. Rows are only ever inserted."""
    __tablename__ = "workout_set_logs"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    workout_log_id: Mapped[int] = mapped_column(
        ForeignKey("workout_logs.id", ondelete="CASCADE"), index=True, nullable=False
    )
    block_id: Mapped[str] = mapped_column(String(64), nullable=False)
    block_type: Mapped[str] = mapped_column(String(32), nullable=False)
    completed_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
    template_exercise_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # single-exercise variants also fill these so totals can be summed per log
    exercise_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    set_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # variant-specific fields (superset_*, dropset_*, giant_set_exercises, ...)
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    workout_log = relationship("WorkoutLog", back_populates="set_logs")
