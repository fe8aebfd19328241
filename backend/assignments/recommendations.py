"""
Study recommendations.

Turns a collection of scored tasks into a short, ordered list of guidance
strings. Each rule is evaluated independently and every rule that applies
contributes one message.
"""

import logging
import math
from datetime import datetime
from typing import List, Optional, Sequence

from .scoring import TaskRecord, TaskStatus


logger = logging.getLogger(__name__)


QUICK_WIN_MINUTES = 60
URGENT_WITHIN_HOURS = 24
HIGH_IMPACT = 4
STUDY_DAYS_PER_WEEK = 7
MAX_COURSES_BEFORE_SWITCHING = 3

ALL_CAUGHT_UP = "🎉 You're all caught up! No tasks left to plan."


def _is_due_soon(task: TaskRecord, now: datetime) -> bool:
    if task.status == TaskStatus.URGENT:
        return True
    hours = task.hours_until_due(now)
    return hours is not None and hours <= URGENT_WITHIN_HOURS


def get_recommendations(tasks: Sequence[TaskRecord], now: Optional[datetime] = None) -> List[str]:
    """
    Build guidance messages for a task collection.

    Rules, in output order:
    - empty collection: a single "all caught up" message
    - quick wins (<= 60 minutes) still open
    - open tasks due within 24 hours or flagged urgent
    - open high-impact (>= 4) tasks
    - total remaining workload with a daily allocation (always)
    - more than 3 distinct courses: minimize context switching
    """
    if now is None:
        now = datetime.now()

    try:
        if not tasks:
            return [ALL_CAUGHT_UP]

        open_tasks = [t for t in tasks if not t.completed]
        messages = []

        quick_wins = sum(1 for t in open_tasks if t.estimated_minutes <= QUICK_WIN_MINUTES)
        if quick_wins:
            messages.append(
                f"⚡ Start with {quick_wins} quick win(s) under an hour to build momentum."
            )

        due_soon = sum(1 for t in open_tasks if _is_due_soon(t, now))
        if due_soon:
            messages.append(
                f"⚠️ {due_soon} task(s) due within 24 hours need urgent attention."
            )

        high_impact = sum(1 for t in open_tasks if t.impact >= HIGH_IMPACT)
        if high_impact:
            messages.append(
                f"⭐ Focus on {high_impact} high-impact task(s) when your energy is highest."
            )

        total_minutes = sum(t.estimated_minutes for t in open_tasks)
        total_hours = math.ceil(total_minutes / 60)
        daily_hours = math.ceil(total_hours / STUDY_DAYS_PER_WEEK)
        messages.append(
            f"📊 Total workload: {total_hours} hour(s). "
            f"Plan about {daily_hours} hour(s) per day this week."
        )

        courses = {t.course for t in tasks}
        if len(courses) > MAX_COURSES_BEFORE_SWITCHING:
            messages.append(
                f"🔀 You have work across {len(courses)} courses. "
                "Group tasks by course to minimize context switching."
            )

        return messages
    except Exception:
        logger.exception("Could not build recommendations")
        return []
