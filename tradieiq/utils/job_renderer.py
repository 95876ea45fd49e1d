"""
Pure display projections for job records.

Turns cached jobs, the view state and aggregates into plain dicts a UI (or
the agent-facing tools) can show without further formatting.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from tradieiq.models.job import DEFAULT_VALUE, Job
from tradieiq.models.session import Identity
from tradieiq.models.status import JobStatus
from tradieiq.utils.validation import format_utc_timestamp

UNNAMED_CLIENT = "Unnamed Client"
NO_ADDRESS = "No address"


def status_label(status: Optional[str]) -> str:
    """'in_progress' -> 'in progress'; missing status reads as 'new'."""
    return (status or JobStatus.NEW.value).replace("_", " ")


def format_relative_time(moment: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Render a timestamp relative to ``now``.

    Returns "Unknown" for None, then "Just now" under a minute, then
    minutes, hours and days ("5m ago", "3h ago", "2d ago").
    """
    if moment is None:
        return "Unknown"
    if now is None:
        now = datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = (now - moment).total_seconds()
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    return f"{int(seconds // 86400)}d ago"


def format_duration(seconds: float) -> str:
    """Elapsed time as mm:ss (minutes keep growing past an hour)."""
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def user_display(identity: Optional[Identity]) -> Optional[Dict[str, str]]:
    if identity is None:
        return None
    return {"name": identity.label, "email": identity.email}


def job_list_item(job: Job, now: Optional[datetime] = None, selected_id: Optional[str] = None) -> Dict[str, Any]:
    """One row of the dashboard job list."""
    status = job.status.value if job.status else JobStatus.NEW.value
    return {
        "id": job.id,
        "client": job.client or UNNAMED_CLIENT,
        "address": job.address or NO_ADDRESS,
        "value": job.value or DEFAULT_VALUE,
        "status": status,
        "status_label": status_label(status),
        "updated": format_relative_time(job.updated_at, now),
        "selected": job.id == selected_id,
    }


def job_detail(job: Job) -> Dict[str, Any]:
    """Everything the job detail screen shows."""
    return {
        "id": job.id,
        "client": job.client or UNNAMED_CLIENT,
        "address": job.address or "No address specified",
        "value": job.value or DEFAULT_VALUE,
        "status": job.status.value,
        "transcript": job.transcript,
        "summary": job.summary,
        "tasks": list(job.tasks),
        "materials": list(job.materials),
        "created_at": format_utc_timestamp(job.created_at) if job.created_at else None,
        "updated_at": format_utc_timestamp(job.updated_at) if job.updated_at else None,
    }


def render_job_list(
    jobs: Sequence[Job], now: Optional[datetime] = None, selected_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    return [job_list_item(job, now, selected_id) for job in jobs]
