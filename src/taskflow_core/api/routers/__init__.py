"""API routers for TaskFlow Core."""

from . import activities, dashboard, issues, projects, search, tasks, users

__all__ = ["activities", "dashboard", "issues", "projects", "search", "tasks", "users"]
