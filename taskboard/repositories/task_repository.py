"""Task store backed by a SQLAlchemy session"""
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from taskboard.models import Task, TaskStatus


class TaskRepository:
    """Document-style access to tasks: by id, by owner, by owner + status."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, task_id: Optional[str]) -> Optional[Task]:
        if not task_id:
            return None
        return self.db.query(Task).filter(Task.id == task_id).first()

    def find_all_by_id(self, task_ids: Iterable[str]) -> List[Task]:
        ids = [task_id for task_id in dict.fromkeys(task_ids) if task_id]
        if not ids:
            return []
        return self.db.query(Task).filter(Task.id.in_(ids)).all()

    def find_by_owner_and_status(self, owner_user_id: str, status: TaskStatus) -> List[Task]:
        """Return one column, ordered by position (ties broken by creation order)."""
        return (
            self.db.query(Task)
            .filter(Task.owner_user_id == owner_user_id, Task.status == status)
            .order_by(Task.position.asc(), Task.created_at.asc(), Task.id.asc())
            .all()
        )

    def find_by_owner(self, owner_user_id: str) -> List[Task]:
        return self.db.query(Task).filter(Task.owner_user_id == owner_user_id).all()

    def save(self, task: Task) -> Task:
        self.db.add(task)
        self.db.commit()
        return task

    def save_all(self, tasks: Iterable[Task]) -> List[Task]:
        tasks = list(tasks)
        if tasks:
            self.db.add_all(tasks)
        self.db.commit()
        return tasks

    def delete(self, task: Task) -> None:
        self.db.delete(task)
        self.db.commit()

    def delete_all(self, tasks: Iterable[Task]) -> None:
        for task in tasks:
            self.db.delete(task)
        self.db.commit()
