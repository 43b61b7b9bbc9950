from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from financeflow.db.core import CategoryType

# ===== CATEGORY PYDANTIC MODELS =====


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Category name")
    category_type: CategoryType = Field(..., description="income or expense")
    color: str = Field(default="#36a2eb", pattern=r"^#[0-9a-fA-F]{6}$")
    icon: str = Field(default="💰", max_length=10)
    parent_id: Optional[int] = Field(None, description="The ID of the parent category, for sub-categories")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category_type: Optional[CategoryType] = None
    color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    icon: Optional[str] = Field(None, max_length=10)
    parent_id: Optional[int] = Field(None, description="New parent, null to move to the top level")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v


class CategoryResponse(CategoryBase):
    id: int
    level: int

    class Config:
        from_attributes = True


class CategoryTreeNode(CategoryResponse):
    full_path: str
    children: List["CategoryTreeNode"] = []


CategoryTreeNode.model_rebuild()
