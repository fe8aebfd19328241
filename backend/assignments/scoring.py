"""
Priority Scoring for the Study Dashboard.

This module defines the task record shared by every part of the dashboard
and the calculator that turns a record into a single sortable priority score.

Scoring Formula:
---------------
priority_score = (time_pressure * complexity * impact_factor * context_penalty) / 4

Each factor is clamped to [0.1, 2.0] so that neither overdue nor far-future
tasks make the score diverge. Higher scores mean "work on this first".
Tasks without a due date always score a neutral 0.5.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Dict, Iterable, List, Optional


logger = logging.getLogger(__name__)


# ==================== Defaults ====================

DEFAULT_COURSE = "General"
DEFAULT_ESTIMATED_MINUTES = 60
DEFAULT_IMPACT = 3
DEFAULT_CONTEXT_SWITCH_COST = 2
DEFAULT_DUE_TIME = time(23, 59)

# Tasks due within this many calendar days (or overdue) are urgent
URGENT_WITHIN_DAYS = 2


class TaskStatus(Enum):
    """Lifecycle status of a task; derived, never set directly."""
    PENDING = "pending"
    URGENT = "urgent"
    COMPLETED = "completed"


class TaskSource(Enum):
    """Where a task record came from."""
    MANUAL = "manual"
    PARSED = "parsed"
    CLASSROOM = "classroom"


def _sanitize_int(value, default: int, low: Optional[int] = None, high: Optional[int] = None) -> int:
    """Coerce value to int, falling back to default; clamp into [low, high]."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    if low is not None and high is not None:
        return max(low, min(high, number))
    return number


def _parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


def _parse_time(value) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        return None


@dataclass
class TaskRecord:
    """
    A unit of work being prioritized: a classroom assignment or a task the
    student typed in.

    Numeric fields are sanitized on construction, so a record built from
    loosely shaped input always satisfies the documented ranges:
        estimated_minutes: positive, default 60
        impact: 1-5, default 3
        context_switch_cost: 1-5, default 2

    `status` is derived against today on construction; call `refresh()` after
    changing the due date or completion, and to fill in `priority_score`.
    """
    title: str
    id: str = ""
    course: str = DEFAULT_COURSE
    due_date: Optional[date] = None
    due_time: Optional[time] = None
    estimated_minutes: int = DEFAULT_ESTIMATED_MINUTES
    impact: int = DEFAULT_IMPACT
    context_switch_cost: int = DEFAULT_CONTEXT_SWITCH_COST
    completed: bool = False
    link: str = ""
    description: str = ""
    source: TaskSource = TaskSource.MANUAL
    status: TaskStatus = field(default=TaskStatus.PENDING, init=False)
    priority_score: Optional[float] = field(default=None, init=False)

    def __post_init__(self):
        """Fill defaults and clamp numeric fields."""
        if not self.id:
            self.id = uuid.uuid4().hex
        self.id = str(self.id)
        self.title = "" if self.title is None else str(self.title).strip()
        self.course = ("" if self.course is None else str(self.course)).strip() or DEFAULT_COURSE
        self.due_date = _parse_date(self.due_date)
        self.due_time = _parse_time(self.due_time)

        minutes = _sanitize_int(self.estimated_minutes, DEFAULT_ESTIMATED_MINUTES)
        self.estimated_minutes = minutes if minutes > 0 else DEFAULT_ESTIMATED_MINUTES
        self.impact = _sanitize_int(self.impact, DEFAULT_IMPACT, 1, 5)
        self.context_switch_cost = _sanitize_int(
            self.context_switch_cost, DEFAULT_CONTEXT_SWITCH_COST, 1, 5
        )
        self.completed = bool(self.completed)
        if not isinstance(self.source, TaskSource):
            try:
                self.source = TaskSource(self.source)
            except ValueError:
                self.source = TaskSource.MANUAL
        self.status = derive_status(self)

    @property
    def due_at(self) -> Optional[datetime]:
        """Moment the task is due; end of day when no time was given."""
        if self.due_date is None:
            return None
        return datetime.combine(self.due_date, self.due_time or DEFAULT_DUE_TIME)

    def hours_until_due(self, now: Optional[datetime] = None) -> Optional[float]:
        """Hours from now until due; negative when overdue, None without a due date."""
        due_at = self.due_at
        if due_at is None:
            return None
        if now is None:
            now = datetime.now()
        return (due_at - now).total_seconds() / 3600

    def refresh(self, now: Optional[datetime] = None) -> "TaskRecord":
        """Recompute status and priority score against `now`."""
        if now is None:
            now = datetime.now()
        self.status = derive_status(self, now.date())
        self.priority_score = compute_priority(self, now)
        return self

    def mark_completed(self, now: Optional[datetime] = None) -> "TaskRecord":
        self.completed = True
        return self.refresh(now)


def derive_status(task: TaskRecord, today: Optional[date] = None) -> TaskStatus:
    """
    Derive a task's status.

    Completion always wins. Otherwise a task is urgent when it is due within
    two calendar days or is already overdue.
    """
    if task.completed:
        return TaskStatus.COMPLETED
    if task.due_date is None:
        return TaskStatus.PENDING
    if today is None:
        today = date.today()
    if (task.due_date - today).days <= URGENT_WITHIN_DAYS:
        return TaskStatus.URGENT
    return TaskStatus.PENDING


def due_label(task: TaskRecord, today: Optional[date] = None) -> str:
    """Short human-readable description of when a task is due."""
    if task.due_date is None:
        return "No due date"
    if today is None:
        today = date.today()
    days = (task.due_date - today).days
    if days < 0:
        return "Overdue"
    if days == 0:
        return "Due today"
    if days == 1:
        return "Due tomorrow"
    return f"Due in {days} days"


@dataclass
class PriorityFactors:
    """The four clamped factors that make up a priority score."""
    time_pressure: float = 0.0
    complexity: float = 0.0
    impact_factor: float = 0.0
    context_penalty: float = 0.0
    hours_until_due: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            'time_pressure': round(self.time_pressure, 3),
            'complexity': round(self.complexity, 3),
            'impact_factor': round(self.impact_factor, 3),
            'context_penalty': round(self.context_penalty, 3),
            'hours_until_due': (
                round(self.hours_until_due, 2) if self.hours_until_due is not None else None
            ),
        }


class PriorityCalculator:
    """
    Maps a task record to a single non-negative float.

    The calculator is stateless: the same task scored against the same `now`
    always yields the same score, so it is safe to call once per task from
    anywhere without coordination.
    """

    NEUTRAL_SCORE = 0.5

    # Clamp bounds shared by every factor
    FACTOR_MIN = 0.1
    FACTOR_MAX = 2.0

    # Baselines: a task due in a day, an hour long, of average impact
    # and average switching cost scores 1.0 / 4
    PRESSURE_HOURS = 24
    IMPACT_BASELINE = 3
    CONTEXT_BASELINE = 2

    def _clamp(self, value: float) -> float:
        return max(self.FACTOR_MIN, min(self.FACTOR_MAX, value))

    def factors(self, task: TaskRecord, now: Optional[datetime] = None) -> Optional[PriorityFactors]:
        """
        Compute the clamped factors for a task, or None without a due date.

        - time_pressure: inversely proportional to hours until due; overdue
          and due-within-the-hour tasks saturate at the maximum
        - complexity: estimated duration in hours
        - impact_factor: impact relative to the baseline of 3
        - context_penalty: shrinks as the context-switch cost grows
        """
        hours = task.hours_until_due(now)
        if hours is None:
            return None

        return PriorityFactors(
            time_pressure=self._clamp(self.PRESSURE_HOURS / max(hours, 1.0)),
            complexity=self._clamp(task.estimated_minutes / 60),
            impact_factor=self._clamp(task.impact / self.IMPACT_BASELINE),
            context_penalty=self._clamp(self.CONTEXT_BASELINE / task.context_switch_cost),
            hours_until_due=hours,
        )

    def compute(self, task: TaskRecord, now: Optional[datetime] = None) -> float:
        """Return the priority score for a task (higher = more pressing)."""
        try:
            factors = self.factors(task, now)
        except Exception:
            logger.warning("Could not score task %r, using neutral score", getattr(task, 'id', None), exc_info=True)
            return self.NEUTRAL_SCORE

        if factors is None:
            return self.NEUTRAL_SCORE

        score = (
            factors.time_pressure *
            factors.complexity *
            factors.impact_factor *
            factors.context_penalty
        ) / 4
        return max(score, 0.0)

    def rank(self, tasks: Iterable[TaskRecord], now: Optional[datetime] = None) -> List[TaskRecord]:
        """
        Refresh every task and return them sorted by priority (highest first).

        Ties keep their input order.
        """
        if now is None:
            now = datetime.now()
        refreshed = [task.refresh(now) for task in tasks]
        refreshed.sort(key=lambda t: t.priority_score or 0.0, reverse=True)
        return refreshed


_calculator = PriorityCalculator()


def compute_priority(task: TaskRecord, now: Optional[datetime] = None) -> float:
    """Score a single task with the default calculator."""
    return _calculator.compute(task, now)


def priority_factors(task: TaskRecord, now: Optional[datetime] = None) -> Optional[PriorityFactors]:
    return _calculator.factors(task, now)


def rank_tasks(tasks: Iterable[TaskRecord], now: Optional[datetime] = None) -> List[TaskRecord]:
    return _calculator.rank(tasks, now)


def task_to_dict(task: TaskRecord) -> Dict:
    """Convert a TaskRecord to a dictionary for JSON serialization."""
    return {
        'id': task.id,
        'title': task.title,
        'course': task.course,
        'due_date': task.due_date.isoformat() if task.due_date else None,
        'due_time': task.due_time.strftime('%H:%M') if task.due_time else None,
        'estimated_minutes': task.estimated_minutes,
        'impact': task.impact,
        'context_switch_cost': task.context_switch_cost,
        'completed': task.completed,
        'status': task.status.value,
        'priority_score': (
            round(task.priority_score, 4) if task.priority_score is not None else None
        ),
        'link': task.link,
        'description': task.description,
        'source': task.source.value,
    }


def task_from_dict(data: Dict) -> TaskRecord:
    """
    Build a TaskRecord from a loosely shaped dictionary.

    Missing or invalid fields fall back to the record defaults; unknown keys
    are ignored. Derived fields (status, priority_score) are not read.
    """
    return TaskRecord(
        id=data.get('id') or "",
        title=data.get('title') or "",
        course=data.get('course') or DEFAULT_COURSE,
        due_date=data.get('due_date'),
        due_time=data.get('due_time'),
        estimated_minutes=data.get('estimated_minutes'),
        impact=data.get('impact'),
        context_switch_cost=data.get('context_switch_cost'),
        completed=data.get('completed', False),
        link=data.get('link') or "",
        description=data.get('description') or "",
        source=data.get('source') or TaskSource.MANUAL,
    )
