#taskflow/api/task.py
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List, Optional

from taskflow.core.settings import settings
from taskflow.dependencies import get_current_user_id, get_task_service
from taskflow.schemas.response import SuccessResponse
from taskflow.schemas.stats import PriorityStats, TaskStats
from taskflow.schemas.task import (
    BulkTaskIds,
    TaskCompleteRequest,
    TaskCreate,
    TaskDeletionCheck,
    TaskFilter,
    TaskListResponse,
    TaskParentRequest,
    TaskProgressRequest,
    TaskRead,
    TaskShort,
    TaskUpdate,
)
from taskflow.services.task_service import TaskService

logger = logging.getLogger("TaskFlow.TasksAPI")

router = APIRouter(prefix="/tasks", tags=["Tasks"])

# Engine errors (not found, validation, quota, store) are mapped to HTTP in main.py.

@router.post("/", response_model=TaskRead)
def create_new_task(
    data: TaskCreate,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    """
    Create a task (optionally as a sub-task of `parent_task_id`).
    """
    return service.create_task(user_id, data.model_dump())

@router.get("/", response_model=TaskListResponse)
def list_tasks(
    is_completed: Optional[bool] = Query(None),
    priority: Optional[str] = Query(None, description="Low, Normal, High, Critical or 0-3"),
    category_id: Optional[int] = Query(None),
    parent_task_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    due_date_from: Optional[datetime] = Query(None),
    due_date_to: Optional[datetime] = Query(None),
    is_overdue: Optional[bool] = Query(None),
    only_parent_tasks: bool = Query(False),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    sort_by: str = Query("created_at"),
    sort_ascending: bool = Query(False),
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    """
    Filtered, sorted and paged list of the caller's tasks.
    """
    task_filter = TaskFilter(
        is_completed=is_completed,
        priority=priority,
        category_id=category_id,
        parent_task_id=parent_task_id,
        search_text=search,
        due_date_from=due_date_from,
        due_date_to=due_date_to,
        is_overdue=is_overdue,
        only_parent_tasks=only_parent_tasks,
        include_inactive=include_inactive,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_ascending=sort_ascending,
    )
    items, pagination = service.list_tasks(user_id, task_filter)
    return TaskListResponse(results=[TaskRead.model_validate(t) for t in items], pagination=pagination)

@router.get("/search", response_model=List[TaskShort])
def search_tasks(
    q: str = Query("", description="Text to look for in title or description"),
    max_results: int = Query(settings.MAX_SEARCH_RESULTS, ge=1, le=100),
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.search_tasks(user_id, q, max_results)

@router.get("/overdue", response_model=List[TaskShort])
def overdue_tasks(
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.get_overdue_tasks(user_id)

@router.get("/due-today", response_model=List[TaskShort])
def tasks_due_today(
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.get_tasks_due_today(user_id)

@router.get("/due-this-week", response_model=List[TaskShort])
def tasks_due_this_week(
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.get_tasks_due_this_week(user_id)

@router.get("/stats", response_model=TaskStats)
def task_stats(
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.get_stats(user_id)

@router.get("/stats/priority", response_model=List[PriorityStats])
def priority_stats(
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.get_priority_stats(user_id)

@router.get("/stats/category/{category_id}", response_model=TaskStats)
def category_stats(
    category_id: int,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.get_stats_by_category(user_id, category_id)

@router.post("/bulk-delete", response_model=SuccessResponse)
def bulk_delete(
    data: BulkTaskIds,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    deleted = service.bulk_delete_tasks(user_id, data.task_ids)
    return SuccessResponse(result=deleted, detail=f"{deleted} task(s) deleted")

@router.post("/bulk-complete", response_model=SuccessResponse)
def bulk_complete(
    data: BulkTaskIds,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    completed = service.bulk_complete_tasks(user_id, data.task_ids)
    return SuccessResponse(result=completed, detail=f"{completed} task(s) completed")

@router.get("/{task_id}", response_model=TaskRead)
def get_one_task(
    task_id: int,
    include_sub_tasks: bool = Query(False),
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    """
    Get a task by ID, with its direct sub-tasks on request.
    """
    task = TaskRead.model_validate(service.get_task(user_id, task_id))
    if include_sub_tasks:
        children = service.get_sub_tasks(user_id, task_id)
        task = task.model_copy(update={"sub_tasks": [TaskRead.model_validate(c) for c in children]})
    return task

@router.patch("/{task_id}", response_model=TaskRead)
def update_one_task(
    task_id: int,
    data: TaskUpdate,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    """
    Partial update; only the fields sent are applied.
    """
    return service.update_task(user_id, task_id, data.model_dump(exclude_unset=True))

@router.delete("/{task_id}", response_model=SuccessResponse)
def delete_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    """
    Soft-delete a task together with all of its sub-tasks.
    """
    if not service.delete_task(user_id, task_id):
        logger.info(f"Delete of task {task_id} by user {user_id}: not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return SuccessResponse(result=task_id, detail="Task deleted")

@router.get("/{task_id}/deletion-check", response_model=TaskDeletionCheck)
def deletion_check(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.check_task_deletion(user_id, task_id)

@router.patch("/{task_id}/complete", response_model=TaskRead)
def complete_task(
    task_id: int,
    data: TaskCompleteRequest,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.complete_task(user_id, task_id, data.is_completed)

@router.patch("/{task_id}/progress", response_model=TaskRead)
def update_progress(
    task_id: int,
    data: TaskProgressRequest,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.update_progress(user_id, task_id, data.completion_percentage)

@router.get("/{task_id}/subtasks", response_model=List[TaskRead])
def list_sub_tasks(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.get_sub_tasks(user_id, task_id)

@router.put("/{task_id}/parent", response_model=TaskRead)
def set_parent(
    task_id: int,
    data: TaskParentRequest,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    """
    Move a task under another task of the caller.
    """
    return service.set_parent(user_id, task_id, data.parent_task_id)

@router.delete("/{task_id}/parent", response_model=TaskRead)
def remove_parent(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    return service.remove_parent(user_id, task_id)

@router.get("/{task_id}/depth", response_model=SuccessResponse)
def task_depth(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    user_id: int = Depends(get_current_user_id),
):
    task = service.get_task(user_id, task_id)
    return SuccessResponse(result=service.calculate_depth(task.id), detail="Depth from the root task")
