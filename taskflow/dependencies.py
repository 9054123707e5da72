# taskflow/dependencies.py

from typing import Generator
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from taskflow.core.security import oauth2_scheme, user_id_from_token
from taskflow.core.settings import settings
from taskflow.crud.category import SqlCategoryStore
from taskflow.crud.task import SqlTaskStore
from taskflow.database import SessionLocal
from taskflow.services.task_service import TaskService

def get_db() -> Generator[Session, None, None]:
    """
    Yield a database session and close it after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_current_user_id(token: str = Depends(oauth2_scheme)) -> int:
    """
    Caller identity: the `user_id` claim of a valid access token.
    """
    user_id = user_id_from_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id

def get_category_store(db: Session = Depends(get_db)) -> SqlCategoryStore:
    return SqlCategoryStore(db)

def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    """
    One engine per request, bound to the request's session.
    """
    return TaskService(
        SqlTaskStore(db),
        SqlCategoryStore(db),
        max_tasks_per_user=settings.MAX_TASKS_PER_USER,
        max_task_depth=settings.MAX_TASK_DEPTH,
    )
