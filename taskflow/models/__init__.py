from .category import Category
from .priority import Priority
from .task import Task

# register every model here so Base.metadata sees it
