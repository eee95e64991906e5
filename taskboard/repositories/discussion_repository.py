"""Shared discussion store"""
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from taskboard.models import TaskDiscussion


class DiscussionRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, discussion_id: Optional[str]) -> Optional[TaskDiscussion]:
        if not discussion_id:
            return None
        return self.db.query(TaskDiscussion).filter(TaskDiscussion.id == discussion_id).first()

    def find_all_by_id(self, discussion_ids: Iterable[str]) -> Dict[str, TaskDiscussion]:
        """Return the discussions that exist, keyed by id."""
        ids = {discussion_id for discussion_id in discussion_ids if discussion_id}
        if not ids:
            return {}
        rows = self.db.query(TaskDiscussion).filter(TaskDiscussion.id.in_(ids)).all()
        return {row.id: row for row in rows}

    def save(self, discussion: TaskDiscussion, commit: bool = True) -> TaskDiscussion:
        self.db.add(discussion)
        if commit:
            self.db.commit()
        return discussion
