#taskflow/api/category.py
from fastapi import APIRouter, Depends
from typing import List

from taskflow.crud.category import SqlCategoryStore
from taskflow.dependencies import get_category_store, get_current_user_id
from taskflow.schemas.category import CategoryCreate, CategoryRead

router = APIRouter(prefix="/categories", tags=["Categories"])

@router.post("/", response_model=CategoryRead)
def create_new_category(
    data: CategoryCreate,
    store: SqlCategoryStore = Depends(get_category_store),
    user_id: int = Depends(get_current_user_id),
):
    """
    Create a category owned by the caller.
    """
    return store.create_category(user_id, data.model_dump())

@router.get("/", response_model=List[CategoryRead])
def list_categories(
    store: SqlCategoryStore = Depends(get_category_store),
    user_id: int = Depends(get_current_user_id),
):
    return store.list_for_user(user_id)
