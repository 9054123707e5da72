#taskflow/schemas/response.py
from pydantic import BaseModel, Field
from typing import Any, Optional

class ErrorResponse(BaseModel):
    """
    ErrorResponse: body of every mapped engine error.
    """
    detail: str = Field(..., examples=["Task not found"])
    code: str = Field(..., examples=["task_not_found"], description="Machine-readable code")

class SuccessResponse(BaseModel):
    """
    SuccessResponse: generic operation result.
    """
    result: Any = Field(..., description="Operation result")
    detail: Optional[str] = Field(None, examples=["Operation successful"])
