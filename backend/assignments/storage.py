"""
Key/value stores for dashboard state.

The dashboard remembers two things per student: ids of tasks they deleted
and the tasks they added by hand. Both are kept behind a tiny `load` /
`save` interface so the application layer can be handed a Django session in
production and a plain dict in tests.
"""

import copy
from typing import Any, Dict, Optional


DELETED_TASK_IDS_KEY = "deleted_task_ids"
MANUAL_TASKS_KEY = "manual_tasks"


class TaskStore:
    """Interface for dashboard state storage."""

    def load(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def save(self, key: str, data: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryTaskStore(TaskStore):
    """Dict-backed store; values are copied in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def load(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    def save(self, key: str, data: Any) -> None:
        self._data[key] = copy.deepcopy(data)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SessionTaskStore(TaskStore):
    """
    Store backed by a Django session.

    Values must be JSON serializable; the session serializer rejects anything
    else when the response is written.
    """

    def __init__(self, session):
        self.session = session

    def load(self, key: str) -> Optional[Any]:
        return self.session.get(key)

    def save(self, key: str, data: Any) -> None:
        self.session[key] = data
        self.session.modified = True

    def delete(self, key: str) -> None:
        if key in self.session:
            del self.session[key]
