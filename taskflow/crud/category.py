#taskflow/crud/category.py
import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskflow.core.exceptions import StoreError
from taskflow.models.category import Category

logger = logging.getLogger("TaskFlow.Stores")

class SqlCategoryStore:
    """
    CategoryStore backed by SQLAlchemy. Only ownership checks are used by the task engine;
    create/list serve the categories router.
    """

    def __init__(self, db: Session):
        self.db = db

    def exists_for_user(self, user_id: int, category_id: int) -> bool:
        if category_id is None:
            return False
        return (
            self.db.query(Category.id)
            .filter(
                Category.id == category_id,
                Category.user_id == user_id,
                Category.is_active == True,
            )
            .first()
        ) is not None

    def create_category(self, user_id: int, data: dict) -> Category:
        category = Category(
            user_id=user_id,
            name=data["name"].strip(),
            description=(data.get("description") or "").strip() or None,
            color_code=data.get("color_code") or "#3498DB",
            is_active=True,
        )
        self.db.add(category)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create category for user {user_id}: {e}")
            raise StoreError("Database error while creating category.") from e
        self.db.refresh(category)
        logger.info(f"Created category {category.id} for user {user_id}")
        return category

    def list_for_user(self, user_id: int) -> List[Category]:
        return (
            self.db.query(Category)
            .filter(Category.user_id == user_id, Category.is_active == True)
            .order_by(Category.name.asc())
            .all()
        )
