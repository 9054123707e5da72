#taskflow/models/task.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Boolean, Index, func
)
from sqlalchemy.orm import relationship
from taskflow.models.base import Base
from taskflow.models.priority import Priority

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000

class Task(Base):
    """
    Task: user-scoped unit of work. Supports parent/child trees, progress tracking and soft-delete.

    is_completed, completion_percentage == 100 and completed_at are kept in lock-step by the task service.
    """
    __tablename__ = "tasks"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    user_id: int = Column(Integer, nullable=False, index=True, doc="Owner user ID")
    category_id: int = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True, doc="Category ID")
    parent_task_id: int = Column(Integer, ForeignKey("tasks.id"), nullable=True, index=True, doc="Parent task ID")
    title: str = Column(String(TITLE_MAX_LENGTH), nullable=False, doc="Title")
    description: str = Column(String(DESCRIPTION_MAX_LENGTH), nullable=True, doc="Description")
    priority: int = Column(Integer, nullable=False, default=int(Priority.NORMAL), doc="Priority (0=Low .. 3=Critical)")
    due_date: datetime = Column(DateTime(timezone=True), nullable=True, doc="Due date")
    completion_percentage: int = Column(Integer, nullable=False, default=0, doc="Progress 0-100")
    resume_percentage: int = Column(Integer, nullable=True, doc="Progress to restore when completion is reverted")
    is_completed: bool = Column(Boolean, default=False, nullable=False, doc="Completed flag")
    completed_at: datetime = Column(DateTime(timezone=True), nullable=True, doc="Completed at")
    is_active: bool = Column(Boolean, default=True, nullable=False, doc="Soft-delete marker")
    deleted_at: datetime = Column(DateTime(timezone=True), nullable=True, doc="Deleted at")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Created at")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Updated at")

    category = relationship("Category", back_populates="tasks")
    # Sub-tasks (self-referencing). No ORM cascade: soft-delete cascades are issued by the task service.
    parent = relationship("Task", remote_side=[id], backref="subtasks")

    __table_args__ = (
        Index("ix_tasks_user_active", "user_id", "is_active"),
        Index("ix_tasks_due_date", "due_date"),
        Index("ix_tasks_priority", "priority"),
    )

    def __repr__(self):
        return (
            f"<Task(id={self.id}, title='{self.title}', user_id={self.user_id}, "
            f"category_id={self.category_id}, parent_task_id={self.parent_task_id}, "
            f"priority={self.priority}, completion={self.completion_percentage}, active={self.is_active})>"
        )
