from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, ForeignKey, DateTime, String, Float, UniqueConstraint
from liftlog.db import Base

class ExerciseMetrics(Base):
    __tablename__ = "user_exercise_metrics"
    __table_args__ = (UniqueConstraint("user_id", "exercise_id", name="uq_user_exercise_metrics"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    exercise_id: Mapped[str] = mapped_column(String(64), nullable=False)
    estimated_1rm: Mapped[float | None] = mapped_column(Float, nullable=True)
    best_weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    best_reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    best_volume: Mapped[float | None] = mapped_column(Float, nullable=True)
    best_volume_weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    best_volume_reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
