# taskflow/services/task_service.py
"""
Task hierarchy & lifecycle engine.

Owns every task operation for a user: create/update/complete/progress,
soft-delete with cascade, parent/child hierarchy (depth limit, cycle
prevention), filtered queries and statistics. Storage is reached only
through the TaskStore / CategoryStore ports.

Tasks of other users are reported exactly like missing tasks.
"""
import logging
import math
from collections import Counter, deque
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from taskflow.core.clock import as_utc, utcnow
from taskflow.core.exceptions import (
    CircularReference,
    DepthLimitExceeded,
    InvalidArgument,
    InvalidCategory,
    QuotaExceeded,
    TaskNotFound,
)
from taskflow.models.priority import DEFAULT_PRIORITY, Priority
from taskflow.models.task import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, Task
from taskflow.schemas.stats import PriorityStats, TaskStats
from taskflow.schemas.task import Pagination, TaskDeletionCheck, TaskFilter
from taskflow.services.ports import CategoryStore, TaskStore

logger = logging.getLogger("TaskFlow.Tasks")

DEFAULT_MAX_TASKS_PER_USER = 50
DEFAULT_MAX_TASK_DEPTH = 5
DEFAULT_SEARCH_RESULTS = 50
MAX_PAGE_SIZE = 100


def _completion_rate(completed: int, total: int) -> float:
    return round(completed / total * 100, 1) if total else 0.0


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


class TaskService:
    """
    Stateless engine; one instance per request/session is fine.
    `clock` returns the current time and is injectable for tests.
    """

    def __init__(
        self,
        tasks: TaskStore,
        categories: CategoryStore,
        max_tasks_per_user: int = DEFAULT_MAX_TASKS_PER_USER,
        max_task_depth: int = DEFAULT_MAX_TASK_DEPTH,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.tasks = tasks
        self.categories = categories
        self.max_tasks_per_user = max_tasks_per_user
        self.max_task_depth = max_task_depth
        self._clock = clock or utcnow

    def now(self) -> datetime:
        return as_utc(self._clock())

    # ---- CRUD ----

    def create_task(self, user_id: int, data: Dict[str, Any]) -> Task:
        """
        Create an active, incomplete task. Validation order: title, category,
        parent (visibility + depth), quota.
        """
        title = self._clean_title(data.get("title"))
        description = self._clean_description(data.get("description"))

        category_id = data.get("category_id")
        if not self.categories.exists_for_user(user_id, category_id):
            logger.warning(f"User {user_id} tried to create a task in invalid category {category_id}")
            raise InvalidCategory(f"Category {category_id} not found.")

        parent_task_id = data.get("parent_task_id")
        if parent_task_id is not None:
            parent = self._get_owned(user_id, parent_task_id, label="Parent task")
            if not self.check_task_depth_limit(parent.id):
                logger.warning(f"Depth limit {self.max_task_depth} reached under task {parent.id} for user {user_id}")
                raise DepthLimitExceeded(
                    f"Task hierarchy cannot be deeper than {self.max_task_depth} levels."
                )

        if not self.check_task_limit(user_id):
            logger.warning(f"User {user_id} reached the task quota ({self.max_tasks_per_user})")
            raise QuotaExceeded(f"Maximum number of active tasks reached ({self.max_tasks_per_user}).")

        priority = Priority.parse(data.get("priority"), default=DEFAULT_PRIORITY)
        now = self.now()
        task = Task(
            user_id=user_id,
            category_id=category_id,
            parent_task_id=parent_task_id,
            title=title,
            description=description,
            priority=int(priority),
            due_date=as_utc(data.get("due_date")),
            completion_percentage=0,
            resume_percentage=None,
            is_completed=False,
            completed_at=None,
            is_active=True,
            deleted_at=None,
            created_at=now,
            updated_at=now,
        )
        task = self.tasks.add(task)
        logger.info(f"Created task {task.id} for user {user_id} (parent={parent_task_id})")
        return task

    def get_task(self, user_id: int, task_id: int) -> Task:
        return self._get_owned(user_id, task_id)

    def update_task(self, user_id: int, task_id: int, data: Dict[str, Any]) -> Task:
        """
        Partial update: only keys present in `data` are applied.
        Everything is validated before the task is touched.
        """
        task = self._get_owned(user_id, task_id)
        changes: Dict[str, Any] = {}

        if data.get("title") is not None:
            changes["title"] = self._clean_title(data["title"])

        if "description" in data:
            changes["description"] = self._clean_description(data["description"])

        if data.get("priority") is not None:
            priority = Priority.parse(data["priority"])
            if priority is None:
                logger.warning(f"Ignoring unknown priority {data['priority']!r} for task {task.id}")
            else:
                changes["priority"] = int(priority)

        if "due_date" in data:
            changes["due_date"] = as_utc(data["due_date"])

        category_id = data.get("category_id")
        if category_id is not None and category_id != task.category_id:
            if not self.categories.exists_for_user(user_id, category_id):
                logger.warning(f"User {user_id} tried to move task {task.id} to invalid category {category_id}")
                raise InvalidCategory(f"Category {category_id} not found.")
            changes["category_id"] = category_id

        percentage = data.get("completion_percentage")
        if percentage is not None:
            self._validate_percentage(percentage)

        now = self.now()
        for field, value in changes.items():
            setattr(task, field, value)
        if percentage is not None:
            if percentage == 100:
                self._mark_completed(task, now)
            else:
                self._set_progress(task, percentage)
            changes["completion_percentage"] = percentage

        task.updated_at = now
        task = self.tasks.save(task)
        if changes:
            logger.info(f"Updated task {task.id} fields: {list(changes)}")
        else:
            logger.info(f"Update called but no changes for task {task.id}")
        return task

    def delete_task(self, user_id: int, task_id: int) -> bool:
        """
        Soft-delete a task and every active descendant. False when the task is not visible.
        """
        task = self.tasks.get(task_id)
        if not self._is_visible(task, user_id):
            logger.info(f"Delete skipped: task {task_id} not found for user {user_id}")
            return False

        descendants = self._collect_descendants(user_id, task.id)
        now = self.now()
        affected = [task, *descendants]
        for item in affected:
            item.is_active = False
            item.deleted_at = now
            item.updated_at = now
        self.tasks.save_all(affected)
        logger.info(f"Soft-deleted task {task.id} and {len(descendants)} sub-tasks for user {user_id}")
        return True

    def check_task_deletion(self, user_id: int, task_id: int) -> TaskDeletionCheck:
        task = self._get_owned(user_id, task_id)
        children = self.tasks.find_children(user_id, task.id)
        descendants = self._collect_descendants(user_id, task.id)
        warnings = []
        if children:
            warnings.append(
                f"Task has {len(children)} sub-task(s); deleting it also deletes "
                f"{len(descendants)} descendant task(s)."
            )
        return TaskDeletionCheck(
            task_id=task.id,
            can_delete=True,
            sub_task_count=len(children),
            descendant_count=len(descendants),
            warnings=warnings,
        )

    def bulk_delete_tasks(self, user_id: int, task_ids: Iterable[int]) -> int:
        deleted = 0
        for task_id in dict.fromkeys(task_ids):
            if self.delete_task(user_id, task_id):
                deleted += 1
        logger.info(f"Bulk delete for user {user_id}: {deleted} task(s)")
        return deleted

    def bulk_complete_tasks(self, user_id: int, task_ids: Iterable[int]) -> int:
        completed = 0
        for task_id in dict.fromkeys(task_ids):
            try:
                self.complete_task(user_id, task_id, True)
            except TaskNotFound:
                logger.info(f"Bulk complete skipped task {task_id} for user {user_id}")
                continue
            completed += 1
        logger.info(f"Bulk complete for user {user_id}: {completed} task(s)")
        return completed

    # ---- Completion ----

    def complete_task(self, user_id: int, task_id: int, is_completed: bool) -> Task:
        """
        Complete (100%, completed_at=now) or reopen a task. Both directions are idempotent.
        Reopening restores the progress the task had before it was completed.
        """
        task = self._get_owned(user_id, task_id)
        now = self.now()
        if is_completed:
            changed = self._mark_completed(task, now)
        else:
            changed = self._mark_incomplete(task)
        if not changed:
            logger.info(f"Task {task.id} already {'completed' if is_completed else 'open'}")
            return task
        task.updated_at = now
        task = self.tasks.save(task)
        logger.info(f"Task {task.id} completion set to {is_completed}")
        return task

    def update_progress(self, user_id: int, task_id: int, percentage: int) -> Task:
        self._validate_percentage(percentage)
        task = self._get_owned(user_id, task_id)
        now = self.now()
        if percentage == 100:
            changed = self._mark_completed(task, now)
        else:
            changed = task.is_completed or task.completion_percentage != percentage
            self._set_progress(task, percentage)
        if not changed:
            return task
        task.updated_at = now
        task = self.tasks.save(task)
        logger.info(f"Task {task.id} progress set to {percentage}%")
        return task

    # ---- Hierarchy ----

    def get_sub_tasks(self, user_id: int, parent_task_id: int) -> List[Task]:
        parent = self._get_owned(user_id, parent_task_id, label="Parent task")
        return self.tasks.find_children(user_id, parent.id)

    def set_parent(self, user_id: int, task_id: int, parent_task_id: int) -> Task:
        """
        Move a task (with its subtree) under another task of the same user.
        """
        task = self._get_owned(user_id, task_id)
        parent = self._get_owned(user_id, parent_task_id, label="Parent task")

        if not self.check_circular_reference(task.id, parent.id):
            logger.warning(f"Rejected cycle: task {parent.id} under task {task.id} for user {user_id}")
            raise CircularReference(
                f"Task {parent.id} cannot be the parent of task {task.id}: it would create a cycle."
            )
        if task.parent_task_id == parent.id:
            return task

        deepest = self.calculate_depth(parent.id) + 1 + self._subtree_height(user_id, task.id)
        if deepest > self.max_task_depth:
            logger.warning(f"Rejected reparent of task {task.id}: depth {deepest} > {self.max_task_depth}")
            raise DepthLimitExceeded(
                f"Task hierarchy cannot be deeper than {self.max_task_depth} levels."
            )

        task.parent_task_id = parent.id
        task.updated_at = self.now()
        task = self.tasks.save(task)
        logger.info(f"Task {task.id} moved under task {parent.id}")
        return task

    def remove_parent(self, user_id: int, task_id: int) -> Task:
        task = self._get_owned(user_id, task_id)
        if task.parent_task_id is None:
            return task
        previous = task.parent_task_id
        task.parent_task_id = None
        task.updated_at = self.now()
        task = self.tasks.save(task)
        logger.info(f"Task {task.id} detached from task {previous}")
        return task

    def calculate_depth(self, task_id: int) -> int:
        """
        Ancestor hops to the root: 0 for a root task (or an unknown id).
        """
        depth = 0
        seen = {task_id}
        task = self.tasks.get(task_id)
        while task is not None and task.parent_task_id is not None:
            if task.parent_task_id in seen:
                logger.error(f"Parent chain of task {task_id} loops at task {task.parent_task_id}")
                break
            seen.add(task.parent_task_id)
            depth += 1
            task = self.tasks.get(task.parent_task_id)
        return depth

    def check_task_depth_limit(self, parent_task_id: int) -> bool:
        """True when a new child of `parent_task_id` stays within MAX_TASK_DEPTH."""
        return self.calculate_depth(parent_task_id) + 1 <= self.max_task_depth

    def check_circular_reference(self, task_id: int, new_parent_id: int) -> bool:
        """True when `new_parent_id` can become the parent of `task_id` without a cycle."""
        if task_id == new_parent_id:
            return False
        seen = {new_parent_id}
        current = self.tasks.get(new_parent_id)
        while current is not None and current.parent_task_id is not None:
            if current.parent_task_id == task_id or current.parent_task_id in seen:
                return False
            seen.add(current.parent_task_id)
            current = self.tasks.get(current.parent_task_id)
        return True

    def check_task_limit(self, user_id: int) -> bool:
        return self.tasks.count_active(user_id) < self.max_tasks_per_user

    # ---- Queries ----

    def list_tasks(self, user_id: int, task_filter: Optional[TaskFilter] = None) -> Tuple[List[Task], Pagination]:
        task_filter = task_filter or TaskFilter()
        if task_filter.is_overdue is not None and task_filter.reference_time is None:
            task_filter = task_filter.model_copy(update={"reference_time": self.now()})
        items, total = self.tasks.find_by_user(user_id, task_filter)
        return items, self._paginate(task_filter, total)

    def search_tasks(self, user_id: int, text: Optional[str], max_results: int = DEFAULT_SEARCH_RESULTS) -> List[Task]:
        # blank text returns nothing rather than every task
        if not text or not text.strip():
            return []
        limit = max(1, min(int(max_results), MAX_PAGE_SIZE))
        items, _ = self.tasks.find_by_user(user_id, TaskFilter(
            search_text=text.strip(),
            sort_by="updated_at",
            sort_ascending=False,
            page=1,
            page_size=limit,
        ))
        return items

    def get_overdue_tasks(self, user_id: int) -> List[Task]:
        items, _ = self.tasks.find_by_user(user_id, TaskFilter(
            is_completed=False,
            due_before=self.now(),
            sort_by="due_date",
            sort_ascending=True,
            page_size=None,
        ))
        return items

    def get_tasks_due_today(self, user_id: int) -> List[Task]:
        return self._due_within(user_id, days=1)

    def get_tasks_due_this_week(self, user_id: int) -> List[Task]:
        return self._due_within(user_id, days=7)

    # ---- Statistics ----

    def get_stats(self, user_id: int) -> TaskStats:
        return self._aggregate(self._active_tasks(user_id))

    def get_stats_by_category(self, user_id: int, category_id: int) -> TaskStats:
        # unknown or foreign categories simply have no tasks
        if category_id is None:
            return TaskStats()
        return self._aggregate(self._active_tasks(user_id, category_id=category_id))

    def get_priority_stats(self, user_id: int) -> List[PriorityStats]:
        tasks = self._active_tasks(user_id)
        rows = []
        for priority in Priority:
            group = [t for t in tasks if t.priority == int(priority)]
            done = sum(1 for t in group if t.is_completed)
            rows.append(PriorityStats(
                priority=priority.label,
                task_count=len(group),
                completed_count=done,
                completion_rate=_completion_rate(done, len(group)),
            ))
        return rows

    # ---- Helpers ----

    @staticmethod
    def _is_visible(task: Optional[Task], user_id: int) -> bool:
        return task is not None and task.user_id == user_id and bool(task.is_active)

    def _get_owned(self, user_id: int, task_id: int, label: str = "Task") -> Task:
        task = self.tasks.get(task_id) if task_id is not None else None
        if not self._is_visible(task, user_id):
            raise TaskNotFound(f"{label} {task_id} not found.")
        return task

    @staticmethod
    def _clean_title(value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidArgument("Title is required.")
        title = value.strip()
        if len(title) > TITLE_MAX_LENGTH:
            raise InvalidArgument(f"Title must be at most {TITLE_MAX_LENGTH} characters.")
        return title

    @staticmethod
    def _clean_description(value: Any) -> Optional[str]:
        if value is None:
            return None
        description = str(value).strip()
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise InvalidArgument(f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters.")
        return description or None

    @staticmethod
    def _validate_percentage(percentage: Any) -> None:
        if isinstance(percentage, bool) or not isinstance(percentage, int) or not 0 <= percentage <= 100:
            raise InvalidArgument("Completion percentage must be between 0-100.")

    @staticmethod
    def _mark_completed(task: Task, now: datetime) -> bool:
        if task.is_completed:
            return False
        current = task.completion_percentage or 0
        task.resume_percentage = current if current < 100 else None
        task.completion_percentage = 100
        task.is_completed = True
        task.completed_at = now
        return True

    @staticmethod
    def _mark_incomplete(task: Task) -> bool:
        if not task.is_completed:
            return False
        task.is_completed = False
        task.completed_at = None
        task.completion_percentage = task.resume_percentage or 0
        task.resume_percentage = None
        return True

    @staticmethod
    def _set_progress(task: Task, percentage: int) -> None:
        task.completion_percentage = percentage
        task.is_completed = False
        task.completed_at = None
        task.resume_percentage = None

    def _collect_descendants(self, user_id: int, root_id: int) -> List[Task]:
        found = []
        seen = {root_id}
        pending = deque([root_id])
        while pending:
            parent_id = pending.popleft()
            for child in self.tasks.find_children(user_id, parent_id):
                if child.id in seen:
                    continue
                seen.add(child.id)
                found.append(child)
                pending.append(child.id)
        return found

    def _subtree_height(self, user_id: int, task_id: int) -> int:
        height = 0
        seen = {task_id}
        level = [task_id]
        while True:
            next_level = []
            for parent_id in level:
                for child in self.tasks.find_children(user_id, parent_id):
                    if child.id not in seen:
                        seen.add(child.id)
                        next_level.append(child.id)
            if not next_level:
                return height
            height += 1
            level = next_level

    def _due_within(self, user_id: int, days: int) -> List[Task]:
        start = _start_of_day(self.now())
        items, _ = self.tasks.find_by_user(user_id, TaskFilter(
            due_date_from=start,
            due_before=start + timedelta(days=days),
            sort_by="due_date",
            sort_ascending=True,
            page_size=None,
        ))
        return items

    def _active_tasks(self, user_id: int, category_id: Optional[int] = None) -> List[Task]:
        items, _ = self.tasks.find_by_user(user_id, TaskFilter(
            category_id=category_id,
            sort_by="created_at",
            sort_ascending=True,
            page_size=None,
        ))
        return items

    @staticmethod
    def _paginate(task_filter: TaskFilter, total: int) -> Pagination:
        page = task_filter.page
        size = task_filter.page_size
        if size is None:
            return Pagination(
                page=1, page_size=None, total_count=total, total_pages=1 if total else 0,
                has_next_page=False, has_previous_page=False,
            )
        return Pagination(
            page=page,
            page_size=size,
            total_count=total,
            total_pages=math.ceil(total / size),
            has_next_page=page * size < total,
            has_previous_page=page > 1,
        )

    def _aggregate(self, tasks: List[Task]) -> TaskStats:
        now = self.now()
        today = _start_of_day(now)
        tomorrow = today + timedelta(days=1)
        week_end = today + timedelta(days=7)

        total = len(tasks)
        completed = [t for t in tasks if t.is_completed]
        overdue = due_today = due_week = 0
        for t in tasks:
            due = as_utc(t.due_date)
            if due is None:
                continue
            if not t.is_completed and due < now:
                overdue += 1
            if today <= due < tomorrow:
                due_today += 1
            if today <= due < week_end:
                due_week += 1

        durations = [
            (as_utc(t.completed_at) - as_utc(t.created_at)).total_seconds() / 86400
            for t in completed
            if t.completed_at is not None and t.created_at is not None
        ]
        finished = [as_utc(t.completed_at) for t in completed if t.completed_at is not None]
        usage = Counter(t.priority for t in tasks)
        most_used = Priority.parse(usage.most_common(1)[0][0]) if usage else None

        return TaskStats(
            total_tasks=total,
            completed_tasks=len(completed),
            pending_tasks=total - len(completed),
            overdue_tasks=overdue,
            tasks_due_today=due_today,
            tasks_due_this_week=due_week,
            completion_rate=_completion_rate(len(completed), total),
            average_completion_days=round(sum(durations) / len(durations), 1) if durations else 0.0,
            last_completed_at=max(finished) if finished else None,
            most_used_priority=most_used.label if most_used is not None else None,
        )
