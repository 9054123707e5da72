#taskflow/crud/task.py
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, not_, or_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskflow.core.clock import as_utc, utcnow
from taskflow.core.exceptions import StoreError
from taskflow.models.priority import Priority
from taskflow.models.task import Task
from taskflow.schemas.task import TaskFilter

logger = logging.getLogger("TaskFlow.Stores")

def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"

class SqlTaskStore:
    """
    TaskStore backed by a SQLAlchemy session. Every write is one commit.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, task_id: int) -> Optional[Task]:
        return self.db.get(Task, task_id)

    def find_by_user(self, user_id: int, task_filter: TaskFilter) -> Tuple[List[Task], int]:
        """
        Filter, sort and page the tasks of one user.
        """
        f = task_filter
        query = self.db.query(Task).filter(Task.user_id == user_id)

        if not f.include_inactive:
            query = query.filter(Task.is_active == True)
        if f.is_completed is not None:
            query = query.filter(Task.is_completed == f.is_completed)
        if f.priority is not None:
            priority = Priority.parse(f.priority)
            # unknown priority values are ignored, not rejected
            if priority is not None:
                query = query.filter(Task.priority == int(priority))
        if f.category_id is not None:
            query = query.filter(Task.category_id == f.category_id)
        if f.parent_task_id is not None:
            query = query.filter(Task.parent_task_id == f.parent_task_id)
        if f.only_parent_tasks:
            query = query.filter(Task.parent_task_id.is_(None))
        if f.search_text and f.search_text.strip():
            pattern = _like_pattern(f.search_text.strip())
            query = query.filter(or_(
                Task.title.ilike(pattern, escape="\\"),
                Task.description.ilike(pattern, escape="\\"),
            ))
        if f.due_date_from is not None:
            query = query.filter(Task.due_date.isnot(None), Task.due_date >= as_utc(f.due_date_from))
        if f.due_date_to is not None:
            query = query.filter(Task.due_date.isnot(None), Task.due_date <= as_utc(f.due_date_to))
        if f.due_before is not None:
            query = query.filter(Task.due_date.isnot(None), Task.due_date < as_utc(f.due_before))
        if f.is_overdue is not None:
            now = as_utc(f.reference_time) or utcnow()
            overdue = and_(Task.is_completed == False, Task.due_date.isnot(None), Task.due_date < now)
            query = query.filter(overdue if f.is_overdue else not_(overdue))

        total = query.count()

        column = getattr(Task, f.sort_by, Task.created_at)
        if f.sort_ascending:
            query = query.order_by(column.asc(), Task.id.asc())
        else:
            query = query.order_by(column.desc(), Task.id.desc())

        if f.page_size is not None:
            query = query.offset((f.page - 1) * f.page_size).limit(f.page_size)

        return query.all(), total

    def find_children(self, user_id: int, parent_task_id: int) -> List[Task]:
        return (
            self.db.query(Task)
            .filter(
                Task.user_id == user_id,
                Task.parent_task_id == parent_task_id,
                Task.is_active == True,
            )
            .order_by(Task.created_at.asc(), Task.id.asc())
            .all()
        )

    def count_active(self, user_id: int) -> int:
        return (
            self.db.query(func.count(Task.id))
            .filter(Task.user_id == user_id, Task.is_active == True)
            .scalar()
        ) or 0

    def add(self, task: Task) -> Task:
        self.db.add(task)
        self._commit(f"creating task for user {task.user_id}")
        self.db.refresh(task)
        return task

    def save(self, task: Task) -> Task:
        self.db.add(task)
        self._commit(f"saving task {task.id}")
        self.db.refresh(task)
        return task

    def save_all(self, tasks: Sequence[Task]) -> None:
        self.db.add_all(list(tasks))
        self._commit(f"saving {len(tasks)} tasks")

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error while {action}: {e}")
            raise StoreError(f"Database error while {action}.") from e
