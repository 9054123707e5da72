# taskflow/core/exceptions.py

class BaseAppException(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str = "App exception"):
        super().__init__(message)

# ==== Validation ====

class ValidationError(BaseAppException):
    """Generic validation error."""
    def __init__(self, message: str = "Validation error"):
        super().__init__(message)

class TaskValidationError(ValidationError):
    """Task validation error."""
    def __init__(self, message: str = "Task validation error"):
        super().__init__(message)

class InvalidArgument(TaskValidationError):
    """An input value is outside its allowed range or shape."""
    def __init__(self, message: str = "Invalid argument"):
        super().__init__(message)

class InvalidCategory(TaskValidationError):
    """Category does not exist, is inactive or belongs to another user."""
    def __init__(self, message: str = "Invalid category"):
        super().__init__(message)

class DepthLimitExceeded(TaskValidationError):
    """The task tree would grow deeper than the configured maximum."""
    def __init__(self, message: str = "Task depth limit exceeded"):
        super().__init__(message)

class CircularReference(TaskValidationError):
    """Reparenting would make a task its own ancestor."""
    def __init__(self, message: str = "Circular task reference"):
        super().__init__(message)

# ==== NotFound ====

class NotFoundError(BaseAppException):
    """Resource not found."""
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)

class TaskNotFound(NotFoundError):
    """Task is missing, inactive or not visible to the caller."""
    def __init__(self, message: str = "Task not found"):
        super().__init__(message)

# ==== Limits ====

class QuotaExceeded(BaseAppException):
    """User already owns the maximum number of active tasks."""
    def __init__(self, message: str = "Task quota exceeded"):
        super().__init__(message)

# ==== Storage ====

class StoreError(BaseAppException):
    """Persistence failure inside a store adapter."""
    def __init__(self, message: str = "Store error"):
        super().__init__(message)
