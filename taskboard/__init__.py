"""Taskboard: per-user task boards with ordered columns, recurrence and shared discussions."""

__version__ = "1.0.0"
