"""
Mapping of classroom coursework into task records.

The classroom API itself is fetched elsewhere; this module only receives the
decoded JSON (courses with their `courseWork` lists) and fills in the fields
the API does not provide with the record defaults.
"""

import logging
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional

from .scoring import DEFAULT_DUE_TIME, TaskRecord, TaskSource


logger = logging.getLogger(__name__)


NO_DESCRIPTION = "No description available"


def _coursework_due_date(work: Dict) -> Optional[date]:
    due = work.get('dueDate')
    if not due:
        return None
    try:
        return date(int(due['year']), int(due['month']), int(due['day']))
    except (KeyError, TypeError, ValueError):
        logger.warning("Ignoring malformed dueDate on coursework %s: %r", work.get('id'), due)
        return None


def _coursework_due_time(work: Dict) -> time:
    due = work.get('dueTime')
    if not due:
        return DEFAULT_DUE_TIME
    # The API omits zero-valued fields; missing parts fall back to 23:59
    hours = int(due.get('hours') or DEFAULT_DUE_TIME.hour)
    minutes = int(due.get('minutes') or DEFAULT_DUE_TIME.minute)
    try:
        return time(hours, minutes)
    except ValueError:
        return DEFAULT_DUE_TIME


def task_from_coursework(work: Dict, course_name: str, now: Optional[datetime] = None) -> TaskRecord:
    """
    Map one `courseWork` object to a scored TaskRecord.

    Effort, impact and context-switch cost are not provided by the API and
    take the record defaults.
    """
    task = TaskRecord(
        id=str(work['id']),
        title=work.get('title') or "Untitled assignment",
        course=course_name,
        due_date=_coursework_due_date(work),
        due_time=_coursework_due_time(work),
        link=work.get('alternateLink') or "",
        description=work.get('description') or NO_DESCRIPTION,
        source=TaskSource.CLASSROOM,
    )
    return task.refresh(now)


def tasks_from_courses(courses: Iterable[Dict], now: Optional[datetime] = None) -> List[TaskRecord]:
    """
    Map every coursework item of every course.

    A malformed item is skipped with a warning so one bad assignment does not
    hide the rest of the course.
    """
    if now is None:
        now = datetime.now()

    tasks = []
    for course in courses:
        course_name = course.get('name') or ""
        for work in course.get('courseWork') or []:
            try:
                tasks.append(task_from_coursework(work, course_name, now))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed coursework in %r: %r", course_name, work, exc_info=True)
    return tasks


def sort_by_due_date(tasks: Iterable[TaskRecord]) -> List[TaskRecord]:
    """Order tasks by due date, earliest first, undated tasks last."""
    return sorted(tasks, key=lambda t: (t.due_at is None, t.due_at or datetime.max))
