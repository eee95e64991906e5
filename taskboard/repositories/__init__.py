"""Store interfaces used by the services."""
from taskboard.repositories.discussion_repository import DiscussionRepository
from taskboard.repositories.task_repository import TaskRepository

__all__ = ["DiscussionRepository", "TaskRepository"]
