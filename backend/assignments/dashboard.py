"""
Dashboard application layer.

Combines tasks fetched from the classroom with tasks the student added by
hand, hides the ones they deleted, and ranks what is left. All state goes
through an injected TaskStore; the scoring core never sees it.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from .scoring import TaskRecord, rank_tasks, task_from_dict, task_to_dict
from .storage import DELETED_TASK_IDS_KEY, MANUAL_TASKS_KEY, TaskStore


logger = logging.getLogger(__name__)


class TaskNotFound(LookupError):
    """Raised when an operation targets a task id the dashboard does not know."""


class DashboardFull(ValueError):
    """Raised when a change would push the session past its stored task limit."""

    def __init__(self, limit: int):
        super().__init__(f"Dashboard limit of {limit} reached")
        self.limit = limit


class Dashboard:

    def __init__(
        self,
        store: TaskStore,
        max_manual_tasks: Optional[int] = None,
        max_hidden_tasks: Optional[int] = None
    ):
        self.store = store
        self.max_manual_tasks = max_manual_tasks
        self.max_hidden_tasks = max_hidden_tasks

    def deleted_ids(self) -> List[str]:
        return list(self.store.load(DELETED_TASK_IDS_KEY) or [])

    def manual_tasks(self) -> List[TaskRecord]:
        return [task_from_dict(data) for data in self.store.load(MANUAL_TASKS_KEY) or []]

    def _save_manual(self, tasks: Iterable[TaskRecord]) -> None:
        self.store.save(MANUAL_TASKS_KEY, [task_to_dict(t) for t in tasks])

    def add_manual_tasks(self, tasks: Iterable[TaskRecord]) -> List[TaskRecord]:
        """
        Append tasks to the manual list; returns the full manual list.

        Nothing is stored when the result would exceed `max_manual_tasks`.
        """
        manual = self.manual_tasks()
        manual.extend(tasks)
        if self.max_manual_tasks is not None and len(manual) > self.max_manual_tasks:
            logger.warning("Rejected manual tasks: %d exceeds limit %d", len(manual), self.max_manual_tasks)
            raise DashboardFull(self.max_manual_tasks)
        self._save_manual(manual)
        return manual

    def delete_task(self, task_id: str) -> None:
        """
        Remove a manual task, or hide a fetched one.

        Fetched ids are remembered so the task stays hidden after the next
        classroom import, up to `max_hidden_tasks` of them.
        """
        manual = self.manual_tasks()
        remaining = [t for t in manual if t.id != task_id]
        if len(remaining) != len(manual):
            self._save_manual(remaining)
            logger.info("Deleted manual task %s", task_id)
            return

        deleted = self.deleted_ids()
        if task_id not in deleted:
            if self.max_hidden_tasks is not None and len(deleted) >= self.max_hidden_tasks:
                logger.warning("Cannot hide task %s: limit %d reached", task_id, self.max_hidden_tasks)
                raise DashboardFull(self.max_hidden_tasks)
            deleted.append(task_id)
            self.store.save(DELETED_TASK_IDS_KEY, deleted)
        logger.info("Hid task %s", task_id)

    def complete_task(self, task_id: str, now: Optional[datetime] = None) -> TaskRecord:
        manual = self.manual_tasks()
        for task in manual:
            if task.id == task_id:
                task.mark_completed(now)
                self._save_manual(manual)
                return task
        raise TaskNotFound(task_id)

    def visible_tasks(
        self,
        fetched: Iterable[TaskRecord] = (),
        now: Optional[datetime] = None
    ) -> List[TaskRecord]:
        """Fetched plus manual tasks, minus deleted ids, ranked highest first."""
        hidden = set(self.deleted_ids())
        tasks = [t for t in list(fetched) + self.manual_tasks() if t.id not in hidden]
        return rank_tasks(tasks, now)

    def reset(self) -> None:
        self.store.delete(DELETED_TASK_IDS_KEY)
        self.store.delete(MANUAL_TASKS_KEY)
