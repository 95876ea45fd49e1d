"""
Centralized, type-safe status and view definitions for TradieIQ.

All enums inherit from ``(str, Enum)`` so members compare equal to plain
strings and serialize naturally to JSON at tool boundaries.
"""

from enum import Enum


class JobStatus(str, Enum):
    """Lifecycle of a job record.

    Typical progression:
        new  ->  quoted  ->  in_progress  ->  completed
    """

    NEW = "new"
    QUOTED = "quoted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Statuses counted as "active" on the dashboard.
ACTIVE_STATUSES = frozenset({JobStatus.NEW, JobStatus.IN_PROGRESS})


class SessionState(str, Enum):
    """Client belief about authentication. Loading is left exactly once."""

    LOADING = "loading"
    SIGNED_OUT = "signed_out"
    SIGNED_IN = "signed_in"


class ViewName(str, Enum):
    """Screens the view controller can select."""

    LOADING = "loading"
    SIGN_IN = "sign_in"
    DASHBOARD = "dashboard"
    JOB_DETAIL = "job_detail"


PROTECTED_VIEWS = frozenset({ViewName.DASHBOARD, ViewName.JOB_DETAIL})


class JobTab(str, Enum):
    """Tabs on the job detail screen."""

    TRANSCRIPT = "transcript"
    SUMMARY = "summary"
    TASKS = "tasks"
    MATERIALS = "materials"
