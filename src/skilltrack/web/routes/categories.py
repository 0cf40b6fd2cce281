"""Category endpoints."""

from fastapi import APIRouter, Depends, status

from skilltrack.core import skills
from skilltrack.core.auth import CurrentUser
from skilltrack.web.deps import get_current_user
from skilltrack.web.schemas import CategoryCreate, CategoryListResponse, CategoryResponse

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=CategoryListResponse)
async def list_categories(user: CurrentUser = Depends(get_current_user)) -> CategoryListResponse:
    categories = [CategoryResponse.model_validate(c) for c in skills.list_categories()]
    return CategoryListResponse(categories=categories, count=len(categories))


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    user: CurrentUser = Depends(get_current_user),
) -> CategoryResponse:
    """Create a category with its subcategories (admins only)."""
    category = skills.create_category(
        user,
        name=body.name,
        description=body.description,
        subcategories=[(s.name, s.description) for s in body.subcategories],
    )
    return CategoryResponse.model_validate(category)
