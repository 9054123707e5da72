#taskflow/schemas/category.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Work"])
    description: Optional[str] = Field(None, max_length=500)
    color_code: str = Field("#3498DB", pattern=r"^#[0-9A-Fa-f]{6}$")

class CategoryRead(BaseModel):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    color_code: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
