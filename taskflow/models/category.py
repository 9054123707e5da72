#taskflow/models/category.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Index, func
)
from sqlalchemy.orm import relationship
from taskflow.models.base import Base

class Category(Base):
    """
    Category: user-owned grouping for tasks. Its lifecycle is managed outside the task engine.
    """
    __tablename__ = "categories"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    user_id: int = Column(Integer, nullable=False, index=True, doc="Owner user ID")
    name: str = Column(String(100), nullable=False, doc="Category name")
    description: str = Column(String(500), nullable=True, doc="Description")
    color_code: str = Column(String(7), nullable=False, default="#3498DB", doc="Colour (#RRGGBB)")
    is_active: bool = Column(Boolean, default=True, nullable=False, doc="Active flag")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Created at")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Updated at")

    tasks = relationship("Task", back_populates="category", lazy="dynamic")

    __table_args__ = (
        Index("ix_categories_user_active", "user_id", "is_active"),
    )

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', user_id={self.user_id})>"
