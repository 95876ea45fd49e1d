"""
Dashboard aggregates, recomputed from the full job list on every push.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Optional

from tradieiq.models.status import ACTIVE_STATUSES, JobStatus

# Leading decimal number, the way a browser's parseFloat reads "1500.50 inc GST".
_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


@dataclass(frozen=True)
class JobAggregates:
    total: int = 0
    active_count: int = 0
    total_value: float = 0.0
    today_count: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "active_count": self.active_count,
            "total_value": self.total_value,
            "today_count": self.today_count,
            "by_status": dict(self.by_status),
        }


def parse_value(value: Optional[str]) -> float:
    """
    Parse a display value such as "$1,500" into a number.

    ``$`` and ``,`` are ignored. Absent or unparsable values count as 0.
    """
    if value is None:
        return 0.0
    cleaned = str(value).replace("$", "").replace(",", "")
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    number = float(match.group(0))
    if not math.isfinite(number):
        return 0.0
    return number


def _as_utc_date(moment: Optional[datetime]) -> Optional[date]:
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).date()


def compute_aggregates(jobs: Iterable[Any], today: Optional[date] = None) -> JobAggregates:
    """
    Summarise a job list.

    Args:
        jobs: Job records (anything with status/value/created_at attributes)
        today: UTC date used for ``today_count``; defaults to now

    Returns:
        JobAggregates for the list
    """
    if today is None:
        today = datetime.now(timezone.utc).date()

    by_status = {status.value: 0 for status in JobStatus}
    total = 0
    active_count = 0
    total_value = 0.0
    today_count = 0

    for job in jobs:
        total += 1
        status = JobStatus(job.status or JobStatus.NEW)
        by_status[status.value] += 1
        if status in ACTIVE_STATUSES:
            active_count += 1
        total_value += parse_value(job.value)
        if _as_utc_date(job.created_at) == today:
            today_count += 1

    return JobAggregates(
        total=total,
        active_count=active_count,
        total_value=total_value,
        today_count=today_count,
        by_status=by_status,
    )
