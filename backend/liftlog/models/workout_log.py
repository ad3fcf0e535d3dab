from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, ForeignKey, DateTime, String, Numeric, Index, text
from liftlog.db import Base

class WorkoutLog(Base):
    __tablename__ = "workout_logs"
    __table_args__ = (
        # one active (not completed) log per client + assignment
        Index(
            "uq_workout_logs_active",
            "client_id",
            "workout_assignment_id",
            unique=True,
            postgresql_where=text("completed_at IS NULL"),
            sqlite_where=text("completed_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    workout_assignment_id: Mapped[int] = mapped_column(
        ForeignKey("workout_assignments.id", ondelete="CASCADE"), index=True
    )
    session_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    started_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # filled in on completion
    total_sets_completed: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_reps_completed: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_weight_lifted: Mapped[float | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    client = relationship("User", back_populates="workout_logs")
    assignment = relationship("WorkoutAssignment")
    set_logs = relationship("WorkoutSetLog", back_populates="workout_log", cascade="all, delete-orphan",
                            order_by="WorkoutSetLog.id")
