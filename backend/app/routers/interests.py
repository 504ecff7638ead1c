"""Interests router — collect, list and delete travel interests."""

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.errors import OwnershipMismatch
from app.models.user import User
from app.schemas.interest import CreateInterestRequest, InterestResponse, InterestWithLocations
from app.services.interest_service import interest_service
from app.services.search_results import search_result_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=201)
async def create_interest(
    req: CreateInterestRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    interest = await interest_service.create_interest(db, user, req)
    logger.info(f"Interest {interest.id} saved for user {interest.user_id}")
    return {"success": True, "interest": InterestResponse.model_validate(interest)}


@router.get("")
async def list_interests(
    user_id: uuid.UUID | None = Query(None, alias="userId"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if user_id is not None and user_id != user.id:
        raise OwnershipMismatch("Unauthorized: User ID mismatch")
    interests = await interest_service.list_with_locations(db, user.id)
    return {"interests": interests}


@router.get("/{interest_id}", response_model=InterestWithLocations)
async def get_interest(
    interest_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await interest_service.get_with_locations(db, interest_id, user)


@router.delete("/{interest_id}")
async def delete_interest(
    interest_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await interest_service.delete_interest(db, interest_id, user)
    # results live only in the session, so drop them here
    search_result_store.discard(user.id, interest_id)
    return {"success": True}
