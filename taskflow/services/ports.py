# taskflow/services/ports.py
"""
Ports used by the task engine.

TaskService depends on these Protocols instead of concrete stores, so any
persistence technology can back it. The SQLAlchemy adapters live in taskflow.crud.
"""

from typing import List, Optional, Protocol, Sequence, Tuple

from taskflow.models.task import Task
from taskflow.schemas.task import TaskFilter


class TaskStore(Protocol):
    def get(self, task_id: int) -> Optional[Task]: ...

    def find_by_user(self, user_id: int, task_filter: TaskFilter) -> Tuple[List[Task], int]:
        """Matching tasks (sorted, paged) and the total count before paging."""
        ...

    def find_children(self, user_id: int, parent_task_id: int) -> List[Task]:
        """Direct active children, oldest first."""
        ...

    def count_active(self, user_id: int) -> int: ...

    def add(self, task: Task) -> Task: ...

    def save(self, task: Task) -> Task: ...

    def save_all(self, tasks: Sequence[Task]) -> None: ...


class CategoryStore(Protocol):
    def exists_for_user(self, user_id: int, category_id: int) -> bool:
        """True when the category exists, is active and belongs to user_id."""
        ...
