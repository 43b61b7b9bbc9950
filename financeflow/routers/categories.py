from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from financeflow.crud import crud_category
from financeflow.models import category as category_models
from financeflow.db.core import get_db, NotFoundError, ConflictError, CategoryType

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)


@router.post("/", response_model=category_models.CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category: category_models.CategoryCreate,
    db: Session = Depends(get_db)
):
    """
    Create a new category, optionally below a parent category (at most three levels deep).
    """
    try:
        return crud_category.create_db_category(db=db, category_data=category)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[category_models.CategoryResponse])
def read_categories(
    category_type: Optional[CategoryType] = None,
    level: Optional[int] = None,
    parent_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 1000,
    db: Session = Depends(get_db)
):
    """
    Retrieve categories as a flat list, ordered by level and name.
    """
    return crud_category.read_db_categories(
        db=db, category_type=category_type, level=level, parent_id=parent_id, skip=skip, limit=limit
    )


@router.get("/tree", response_model=List[category_models.CategoryTreeNode])
def read_category_tree(
    category_type: Optional[CategoryType] = None,
    db: Session = Depends(get_db)
):
    """
    Retrieve categories nested under their parents, each with its full path.
    """
    categories = crud_category.read_db_categories(db=db, category_type=category_type, limit=None)
    return crud_category.build_category_tree(categories)


@router.get("/{category_id}", response_model=category_models.CategoryResponse)
def read_category(
    category_id: int,
    db: Session = Depends(get_db)
):
    """
    Retrieve a specific category by its ID.
    """
    db_category = crud_category.read_db_category(db=db, category_id=category_id)
    if db_category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return db_category


@router.put("/{category_id}", response_model=category_models.CategoryResponse)
def update_category(
    category_id: int,
    category: category_models.CategoryUpdate,
    db: Session = Depends(get_db)
):
    """
    Update a category. Moving it re-derives the level of it and its subcategories.
    """
    try:
        return crud_category.update_db_category(db=db, category_id=category_id, category_updates=category)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db)
):
    """
    Delete a category that has no transactions and no subcategories.
    """
    try:
        crud_category.delete_db_category(db=db, category_id=category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
