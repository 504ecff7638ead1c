from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.errors import ValidationFailure
from app.models.user import User
from app.schemas.auth import UserResponse
from app.services.interest_service import interest_service

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.post("/profile")
async def create_profile(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create the caller's public profile if it does not exist yet."""
    _, created = await interest_service.ensure_profile(db, user.id, user.full_name, user.role)
    if not created:
        return {"success": True, "message": "Profile already exists"}
    return {"success": True}


@router.get("/search")
async def search_users(
    email: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Case-insensitive substring search on email, at most ten matches."""
    if not email:
        raise ValidationFailure("Email parameter is required")

    result = await db.execute(
        select(User.id, User.email)
        .where(func.lower(User.email).contains(email.lower()))
        .order_by(User.email)
        .limit(10)
    )
    return {"users": [{"id": str(row.id), "email": row.email} for row in result.all()]}
