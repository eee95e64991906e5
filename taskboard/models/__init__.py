"""Taskboard Database Models"""
from taskboard.models.task import Task, TaskActivityType, TaskPriority, TaskStatus
from taskboard.models.discussion import TaskDiscussion
from taskboard.models.notification import Notification
from taskboard.utils.primary_keys import register_string_pk_listener

__all__ = [
    "Task",
    "TaskStatus",
    "TaskPriority",
    "TaskActivityType",
    "TaskDiscussion",
    "Notification",
]


for _model in (
    Task,
    TaskDiscussion,
    Notification,
):
    register_string_pk_listener(_model)
