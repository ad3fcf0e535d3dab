# liftlog/repositories/assignment_repo.py
from __future__ import annotations

from liftlog.models import WorkoutAssignment, WorkoutTemplate
from liftlog.repositories.base import BaseRepository

class AssignmentRepository(BaseRepository[WorkoutAssignment]):
    model = WorkoutAssignment

    def create_template(self, *, name: str) -> WorkoutTemplate:
        template = WorkoutTemplate(name=name)
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)
        return template

    def create(self, client_id: int, *, template_id: int | None, name: str | None = None) -> WorkoutAssignment:
        assignment = WorkoutAssignment(client_id=client_id, template_id=template_id, name=name)
        self.db.add(assignment)
        self.db.commit()
        self.db.refresh(assignment)
        return assignment
