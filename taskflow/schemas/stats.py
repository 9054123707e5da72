#taskflow/schemas/stats.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class TaskStats(BaseModel):
    """
    TaskStats: aggregate over the active tasks of a user (or one category of theirs).
    """
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    overdue_tasks: int = 0
    tasks_due_today: int = 0
    tasks_due_this_week: int = 0
    completion_rate: float = Field(0.0, ge=0, le=100, description="Percent, one decimal")
    average_completion_days: float = Field(0.0, description="Mean days from creation to completion")
    last_completed_at: Optional[datetime] = None
    most_used_priority: Optional[str] = None

class PriorityStats(BaseModel):
    priority: str
    task_count: int = 0
    completed_count: int = 0
    completion_rate: float = 0.0
