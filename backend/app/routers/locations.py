"""Locations router — reference destinations."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.location import CreateLocationRequest, LocationResponse
from app.services.location_service import location_service

router = APIRouter()


@router.get("", response_model=list[LocationResponse])
async def list_locations(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await location_service.list_locations(db)


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(
    location_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await location_service.get_location(db, location_id)


@router.post("", status_code=201, response_model=LocationResponse)
async def create_location(
    req: CreateLocationRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Admins maintain the location catalog."""
    return await location_service.create_location(db, user, req)
