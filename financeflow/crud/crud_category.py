from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional, Dict

from financeflow.db.core import CategoryDB, TransactionDB, NotFoundError, ConflictError, CategoryType
from financeflow.models.category import CategoryCreate, CategoryUpdate, CategoryTreeNode
from financeflow.logging_config import get_logger

logger = get_logger(__name__)

MAX_CATEGORY_LEVEL = 3
PATH_SEPARATOR = " > "


def _subtree_height(category: CategoryDB) -> int:
    """Number of levels from this category down to its deepest descendant, itself included"""
    if not category.children:
        return 1
    return 1 + max(_subtree_height(child) for child in category.children)


def _relevel(category: CategoryDB, level: int):
    category.level = level
    for child in category.children:
        _relevel(child, level + 1)


def create_db_category(db: Session, category_data: CategoryCreate) -> CategoryDB:
    """Create a category, below its parent when one is given"""

    level = 1
    if category_data.parent_id is not None:
        parent = read_db_category(db, category_data.parent_id)
        if not parent:
            raise NotFoundError(f"Parent category with id {category_data.parent_id} not found")
        if parent.category_type != category_data.category_type:
            raise ValueError(
                f"Subcategory type '{category_data.category_type.value}' must match parent type "
                f"'{parent.category_type.value}'"
            )
        level = parent.level + 1

    if level > MAX_CATEGORY_LEVEL:
        raise ValueError(f"Categories can be nested at most {MAX_CATEGORY_LEVEL} levels deep")

    db_category = CategoryDB(
        name=category_data.name,
        category_type=category_data.category_type,
        color=category_data.color,
        icon=category_data.icon,
        parent_id=category_data.parent_id,
        level=level
    )

    try:
        db.add(db_category)
        db.commit()
        db.refresh(db_category)
        return db_category
    except IntegrityError:
        db.rollback()
        raise ValueError("Category creation failed due to a database constraint.")


def read_db_categories(db: Session, category_type: Optional[CategoryType] = None, level: Optional[int] = None,
                       parent_id: Optional[int] = None, skip: int = 0, limit: int = 1000) -> List[CategoryDB]:
    """Read categories ordered by level, then name"""

    query = db.query(CategoryDB)

    if category_type:
        query = query.filter(CategoryDB.category_type == category_type)
    if level is not None:
        query = query.filter(CategoryDB.level == level)
    if parent_id is not None:
        query = query.filter(CategoryDB.parent_id == parent_id)

    return query.order_by(CategoryDB.level, CategoryDB.name).offset(skip).limit(limit).all()


def read_db_category(db: Session, category_id: int) -> Optional[CategoryDB]:
    """Read a single category by its ID"""
    return db.query(CategoryDB).filter(CategoryDB.id == category_id).first()


def update_db_category(db: Session, category_id: int, category_updates: CategoryUpdate) -> CategoryDB:
    """
    Update a category's details.

    Moving a category re-derives the level of the whole subtree, and is
    refused if it would create a cycle or nest anything below level 3.
    """
    db_category = read_db_category(db, category_id)
    if not db_category:
        raise NotFoundError(f"Category with id {category_id} not found")

    update_data = category_updates.model_dump(exclude_unset=True)

    new_type = update_data.get('category_type') or db_category.category_type
    if new_type != db_category.category_type:
        if db_category.children:
            raise ValueError("Cannot change the type of a category that has subcategories")
        transaction_count = db.query(TransactionDB).filter(TransactionDB.category_id == category_id).count()
        if transaction_count:
            raise ConflictError(
                f"Cannot change the type of a category used by {transaction_count} transaction(s)"
            )

    new_parent = db_category.parent
    if 'parent_id' in update_data and update_data['parent_id'] != db_category.parent_id:
        new_parent_id = update_data['parent_id']
        new_parent = None
        if new_parent_id is not None:
            new_parent = read_db_category(db, new_parent_id)
            if not new_parent:
                raise NotFoundError(f"Parent category with id {new_parent_id} not found")

            ancestor = new_parent
            while ancestor is not None:
                if ancestor.id == db_category.id:
                    raise ValueError("A category cannot be moved below itself or one of its subcategories")
                ancestor = ancestor.parent

    if new_parent is not None and new_parent.category_type != new_type:
        raise ValueError(
            f"Subcategory type '{new_type.value}' must match parent type '{new_parent.category_type.value}'"
        )

    new_level = new_parent.level + 1 if new_parent is not None else 1
    if new_level + _subtree_height(db_category) - 1 > MAX_CATEGORY_LEVEL:
        raise ValueError(f"Categories can be nested at most {MAX_CATEGORY_LEVEL} levels deep")

    for field in ('name', 'color', 'icon'):
        if update_data.get(field) is not None:
            setattr(db_category, field, update_data[field])
    db_category.category_type = new_type
    db_category.parent_id = new_parent.id if new_parent is not None else None

    if new_level != db_category.level:
        _relevel(db_category, new_level)

    try:
        db.commit()
        db.refresh(db_category)
        return db_category
    except IntegrityError:
        db.rollback()
        raise ValueError("Category update failed due to a database constraint.")


def delete_db_category(db: Session, category_id: int) -> bool:
    """Delete a category that has neither transactions nor subcategories"""
    db_category = read_db_category(db, category_id)
    if not db_category:
        raise NotFoundError(f"Category with id {category_id} not found")

    transaction_count = db.query(TransactionDB).filter(TransactionDB.category_id == category_id).count()
    if transaction_count:
        raise ConflictError(f"Cannot delete category, it is used by {transaction_count} transaction(s)")

    child_count = db.query(CategoryDB).filter(CategoryDB.parent_id == category_id).count()
    if child_count:
        raise ConflictError(f"Cannot delete category, it has {child_count} subcategories")

    try:
        db.delete(db_category)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Cannot delete category as it is currently in use.")

    logger.info(f"Deleted category {category_id}")
    return True


def build_category_tree(categories: List[CategoryDB]) -> List[CategoryTreeNode]:
    """
    Nest a flat list of categories under their parents.

    Each node carries its full path from the root, e.g. "Food > Restaurants > Fast Food".
    Rows whose parent is not in the list are treated as roots.
    """
    by_parent: Dict[Optional[int], List[CategoryDB]] = {}
    known_ids = {category.id for category in categories}

    for category in categories:
        parent_key = category.parent_id if category.parent_id in known_ids else None
        by_parent.setdefault(parent_key, []).append(category)

    def build(parent_key: Optional[int], parent_path: Optional[str]) -> List[CategoryTreeNode]:
        nodes = []
        for category in sorted(by_parent.get(parent_key, []), key=lambda c: c.name.lower()):
            full_path = f"{parent_path}{PATH_SEPARATOR}{category.name}" if parent_path else category.name
            nodes.append(CategoryTreeNode(
                id=category.id,
                name=category.name,
                category_type=category.category_type,
                color=category.color,
                icon=category.icon,
                parent_id=category.parent_id,
                level=category.level,
                full_path=full_path,
                children=build(category.id, full_path),
            ))
        return nodes

    return build(None, None)
