from sqlalchemy.orm import Session

from taskflow.crud.category import SqlCategoryStore

USER_ID = 1
OTHER_USER_ID = 2


def test_create_category_trims_and_defaults(db: Session):
    store = SqlCategoryStore(db)
    category = store.create_category(USER_ID, {"name": "  Errands ", "description": "  "})

    assert category.id is not None
    assert category.name == "Errands"
    assert category.description is None
    assert category.color_code == "#3498DB"
    assert category.is_active is True

def test_exists_for_user(db: Session, category, other_category):
    store = SqlCategoryStore(db)

    assert store.exists_for_user(USER_ID, category.id) is True
    assert store.exists_for_user(USER_ID, other_category.id) is False
    assert store.exists_for_user(USER_ID, 9999) is False
    assert store.exists_for_user(USER_ID, None) is False

def test_inactive_category_is_not_usable(db: Session, category):
    store = SqlCategoryStore(db)
    category.is_active = False
    db.commit()

    assert store.exists_for_user(USER_ID, category.id) is False
    assert store.list_for_user(USER_ID) == []

def test_list_for_user_sorted_by_name(db: Session, category, other_category):
    store = SqlCategoryStore(db)
    store.create_category(USER_ID, {"name": "Home"})

    assert [c.name for c in store.list_for_user(USER_ID)] == ["Home", "Work"]
    assert [c.name for c in store.list_for_user(OTHER_USER_ID)] == ["Private"]
