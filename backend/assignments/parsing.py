"""
Natural-language task extraction.

Turns free text such as "I need to finish my chemistry lab report due
tomorrow. Quick reading of chapter 4 for history next week" into scored
task records. Extraction is driven by the ordered keyword tables below;
the first matching rule of each table wins and rules are never combined.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from .scoring import DEFAULT_COURSE, TaskRecord, TaskSource


logger = logging.getLogger(__name__)


# ============================================
# KEYWORD TABLES
# ============================================

# A segment must contain at least one of these to be treated as a task
TASK_KEYWORDS = [
    'assignment', 'homework', 'essay', 'report', 'project', 'lab', 'quiz',
    'test', 'exam', 'reading', 'chapter', 'problem', 'write', 'complete',
    'finish', 'submit', 'due', 'deadline', 'study', 'prepare', 'research'
]

SUBJECT_KEYWORDS = [
    'physics', 'chemistry', 'biology', 'math', 'english', 'history',
    'literature', 'calculus', 'algebra'
]

# Leading phrases stripped from titles
FILLER_PREFIXES = ['I have ', 'I need to ']

SEGMENT_DELIMITERS = re.compile(r'[.!?;\n]+')
MIN_SEGMENT_LENGTH = 10


@dataclass(frozen=True)
class DueDateRule:
    keywords: Tuple[str, ...]
    days_ahead: int


@dataclass(frozen=True)
class EffortRule:
    keywords: Tuple[str, ...]
    estimated_minutes: int
    impact: int
    context_switch_cost: int


DUE_DATE_RULES: Sequence[DueDateRule] = (
    DueDateRule(('today',), 0),
    DueDateRule(('tomorrow',), 1),
    DueDateRule(('next week',), 7),
    DueDateRule(('this week',), 3),
)
DEFAULT_DUE_DAYS = 5

EFFORT_RULES: Sequence[EffortRule] = (
    EffortRule(('quick', 'short', 'brief'), 30, 2, 1),
    EffortRule(('long', 'detailed', 'comprehensive'), 180, 4, 3),
    EffortRule(('essay', 'report', 'research'), 240, 5, 4),
    EffortRule(('reading', 'chapter'), 45, 2, 1),
    EffortRule(('quiz', 'test'), 60, 4, 2),
    EffortRule(('lab', 'experiment'), 150, 4, 3),
    EffortRule(('project', 'presentation'), 300, 5, 4),
)
DEFAULT_EFFORT = EffortRule((), 90, 3, 2)


def _keyword_pattern(keyword: str) -> re.Pattern:
    # Match at word starts so plurals hit ("labs") but "latest" does not hit "test"
    return re.compile(r'\b' + re.escape(keyword), re.IGNORECASE)


_PATTERNS = {
    keyword: _keyword_pattern(keyword)
    for keyword in (
        TASK_KEYWORDS + SUBJECT_KEYWORDS +
        [kw for rule in DUE_DATE_RULES for kw in rule.keywords] +
        [kw for rule in EFFORT_RULES for kw in rule.keywords]
    )
}


def _contains(text: str, keyword: str) -> bool:
    pattern = _PATTERNS.get(keyword) or _keyword_pattern(keyword)
    return pattern.search(text) is not None


def _first_hit(text: str, keywords: Sequence[str]) -> Optional[str]:
    for keyword in keywords:
        if _contains(text, keyword):
            return keyword
    return None


class TaskTextParser:
    """
    Splits text into segments and converts the task-like ones into records.

    Each extraction step (title, course, due date, effort) looks at the
    segment independently of the others.
    """

    def split_segments(self, text: str) -> List[str]:
        """Split on sentence punctuation and newlines, dropping short noise."""
        segments = []
        for raw in SEGMENT_DELIMITERS.split(text or ''):
            segment = raw.strip()
            if len(segment) < MIN_SEGMENT_LENGTH:
                continue
            segments.append(segment)
        return segments

    def is_task(self, segment: str) -> bool:
        return _first_hit(segment, TASK_KEYWORDS) is not None

    def extract_title(self, segment: str) -> str:
        title = segment.strip()
        for prefix in FILLER_PREFIXES:
            if title.lower().startswith(prefix.lower()):
                title = title[len(prefix):]
                break
        title = title.strip()
        return title[:1].upper() + title[1:]

    def extract_course(self, segment: str) -> str:
        subject = _first_hit(segment, SUBJECT_KEYWORDS)
        return subject.capitalize() if subject else DEFAULT_COURSE

    def extract_due_days(self, segment: str) -> int:
        for rule in DUE_DATE_RULES:
            if _first_hit(segment, rule.keywords):
                return rule.days_ahead
        return DEFAULT_DUE_DAYS

    def extract_effort(self, segment: str) -> EffortRule:
        for rule in EFFORT_RULES:
            if _first_hit(segment, rule.keywords):
                return rule
        return DEFAULT_EFFORT

    def build_task(self, segment: str, index: int, now: datetime) -> TaskRecord:
        effort = self.extract_effort(segment)
        due_date = now.date() + timedelta(days=self.extract_due_days(segment))
        task = TaskRecord(
            id=f"parsed-{int(now.timestamp() * 1000)}-{index}",
            title=self.extract_title(segment),
            course=self.extract_course(segment),
            due_date=due_date,
            estimated_minutes=effort.estimated_minutes,
            impact=effort.impact,
            context_switch_cost=effort.context_switch_cost,
            source=TaskSource.PARSED,
        )
        return task.refresh(now)

    def parse(self, text: str, now: Optional[datetime] = None) -> List[TaskRecord]:
        """
        Extract scored task records from text, in the order they appear.

        Never raises: segments that do not look like tasks are skipped, and an
        unexpected failure yields an empty list.
        """
        if now is None:
            now = datetime.now()

        try:
            tasks = []
            for segment in self.split_segments(text):
                if not self.is_task(segment):
                    logger.debug("Skipping non-task segment: %r", segment)
                    continue
                tasks.append(self.build_task(segment, len(tasks), now))
            return tasks
        except Exception:
            logger.exception("Task extraction failed")
            return []


_parser = TaskTextParser()


def parse_tasks_from_text(text: str, now: Optional[datetime] = None) -> List[TaskRecord]:
    """Extract scored task records from free text with the default parser."""
    return _parser.parse(text, now)
