#taskflow/schemas/task.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Union
from datetime import datetime

from taskflow.models.priority import Priority

SORTABLE_FIELDS = ("created_at", "updated_at", "priority", "due_date", "title")

def _priority_label(v):
    parsed = Priority.parse(v)
    return parsed.label if parsed is not None else v

class TaskCreate(BaseModel):
    """
    TaskCreate: payload for a new task. Title/category rules are enforced by the task service.
    """
    title: str = Field(..., examples=["Prepare the quarterly report"], description="Title")
    description: Optional[str] = Field(None, examples=["Collect numbers from finance"], description="Description")
    category_id: int = Field(..., examples=[1], description="Category ID")
    priority: Optional[Union[str, int]] = Field("Normal", examples=["High"], description="Low, Normal, High or Critical; unknown values fall back to Normal")
    due_date: Optional[datetime] = Field(None, examples=["2026-12-31T17:00:00Z"], description="Due date")
    parent_task_id: Optional[int] = Field(None, examples=[2], description="Parent task ID")

class TaskUpdate(BaseModel):
    """
    TaskUpdate: partial update, only the fields that are sent are applied.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Union[str, int]] = None
    due_date: Optional[datetime] = None
    category_id: Optional[int] = None
    completion_percentage: Optional[int] = None

class TaskRead(BaseModel):
    """
    TaskRead: full task representation for responses.
    """
    id: int
    user_id: int
    category_id: int
    parent_task_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    priority: str
    due_date: Optional[datetime] = None
    completion_percentage: int
    is_completed: bool
    completed_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    sub_tasks: List["TaskRead"] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @field_validator("priority", mode="before")
    @classmethod
    def priority_label(cls, v):
        return _priority_label(v)

class TaskShort(BaseModel):
    """
    TaskShort: compact task for lists and search results.
    """
    id: int
    title: str
    category_id: int
    parent_task_id: Optional[int] = None
    priority: str
    due_date: Optional[datetime] = None
    completion_percentage: int
    is_completed: bool

    model_config = ConfigDict(from_attributes=True)

    @field_validator("priority", mode="before")
    @classmethod
    def priority_label(cls, v):
        return _priority_label(v)

class TaskFilter(BaseModel):
    """
    TaskFilter: listing criteria. page_size=None disables paging (internal queries).
    """
    is_completed: Optional[bool] = None
    priority: Optional[Union[str, int]] = None
    category_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    search_text: Optional[str] = None
    due_date_from: Optional[datetime] = None
    due_date_to: Optional[datetime] = None
    due_before: Optional[datetime] = None
    is_overdue: Optional[bool] = None
    reference_time: Optional[datetime] = Field(None, description="\"now\" for is_overdue; set by the task service")
    only_parent_tasks: bool = False
    include_inactive: bool = False
    page: int = Field(1, ge=1)
    page_size: Optional[int] = Field(20, ge=1, le=100)
    sort_by: str = "created_at"
    sort_ascending: bool = False

    @field_validator("sort_by", mode="before")
    @classmethod
    def known_sort_field(cls, v):
        # accepts "due_date", "dueDate", "DueDate", ...
        key = str(v or "").strip().lower().replace("_", "")
        aliases = {field.replace("_", ""): field for field in SORTABLE_FIELDS}
        return aliases.get(key, "created_at")

class Pagination(BaseModel):
    page: int
    page_size: Optional[int] = None
    total_count: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

class TaskListResponse(BaseModel):
    results: List[TaskRead]
    pagination: Pagination

class TaskCompleteRequest(BaseModel):
    is_completed: bool = Field(..., description="true completes the task, false reopens it")

class TaskProgressRequest(BaseModel):
    completion_percentage: int = Field(..., examples=[40], description="Progress 0-100")

class TaskParentRequest(BaseModel):
    parent_task_id: int = Field(..., examples=[3])

class BulkTaskIds(BaseModel):
    task_ids: List[int] = Field(..., min_length=1, examples=[[1, 2, 3]])

class TaskDeletionCheck(BaseModel):
    """
    Preview of a delete: deletion is never refused, but sub-tasks are reported.
    """
    task_id: int
    can_delete: bool = True
    sub_task_count: int = 0
    descendant_count: int = 0
    warnings: List[str] = Field(default_factory=list)
