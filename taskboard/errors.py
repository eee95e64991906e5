"""
Typed failures raised by the task services.

Every error is an ``HTTPException`` so an HTTP layer in front of the services
can surface it unchanged; callers using the package directly can catch the
specific subclasses.
"""
from fastapi import HTTPException, status


class TaskboardError(HTTPException):
    default_status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.default_status_code, detail=detail)


class BadRequestError(TaskboardError):
    default_status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(TaskboardError):
    default_status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(TaskboardError):
    default_status_code = status.HTTP_404_NOT_FOUND


class ConflictError(TaskboardError):
    default_status_code = status.HTTP_409_CONFLICT
