"""Search router — dispatch interest searches and present the per-session results."""

import logging
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies import get_bearer_token, get_current_user
from app.errors import NotFound
from app.models.user import User
from app.schemas.package import PackageResponse, PublishRequest, PublishResponse
from app.schemas.search import (
    RecommendedPackage,
    ResultGroup,
    ResultsResponse,
    SearchDispatchResponse,
    SearchPackagesPayload,
    SearchStatusResponse,
    SuggestTourPayload,
)
from app.services.cache_service import cache_service
from app.services.interest_service import interest_service
from app.services.package_service import package_service
from app.services.result_presenter import format_listing, present_group, present_results
from app.services.search_results import InterestResults, search_result_store
from app.services.search_service import search_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter()
proxy_router = APIRouter()


def _find_result(user: User, interest_id: uuid.UUID, package_id: str) -> tuple[InterestResults, RecommendedPackage]:
    slot = search_result_store.get(user.id, interest_id)
    package = slot.find(package_id) if slot else None
    if not slot or not package:
        raise NotFound("Package not found in search results")
    return slot, package


@router.post("/interests/{interest_id}", response_model=SearchDispatchResponse)
async def search_interest(
    interest_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
):
    """Run one interest against the recommendation service; results replace the previous set."""
    interest = await interest_service.get_owned(db, interest_id, user)
    slot = await search_dispatcher.dispatch(user.id, interest, token)
    return SearchDispatchResponse(
        interest_id=interest_id,
        status=slot.status,
        packages=slot.packages or [],
    )


@router.get("/results", response_model=ResultsResponse)
async def list_results(
    view: Literal["grid", "carousel"] = Query("grid"),
    page: int = Query(1, ge=1),
    user: User = Depends(get_current_user),
):
    return present_results(
        search_result_store.all_for(user.id),
        view=view,
        page=page,
        page_size=settings.results_page_size,
    )


@router.get("/results/{interest_id}", response_model=ResultGroup)
async def get_results(
    interest_id: uuid.UUID,
    view: Literal["grid", "carousel"] = Query("grid"),
    page: int = Query(1, ge=1),
    user: User = Depends(get_current_user),
):
    slot = search_result_store.get(user.id, interest_id)
    return present_group(interest_id, slot, view=view, page=page, page_size=settings.results_page_size)


@router.get("/results/{interest_id}/status", response_model=SearchStatusResponse)
async def get_search_status(
    interest_id: uuid.UUID,
    user: User = Depends(get_current_user),
):
    slot = search_result_store.get(user.id, interest_id)
    return SearchStatusResponse(
        interest_id=interest_id,
        status=slot.status if slot else "idle",
        last_error=slot.last_error if slot else None,
    )


@router.get("/results/{interest_id}/packages/{package_id}", response_model=RecommendedPackage)
async def get_result_package(
    interest_id: uuid.UUID,
    package_id: str,
    user: User = Depends(get_current_user),
):
    """Package detail from the stored result; no refetch."""
    _, package = _find_result(user, interest_id, package_id)
    return package


@router.post("/results/{interest_id}/packages/{package_id}/publish", response_model=PublishResponse)
async def publish_result_package(
    interest_id: uuid.UUID,
    package_id: str,
    req: PublishRequest,
    user: User = Depends(get_current_user),
):
    slot, package = _find_result(user, interest_id, package_id)
    logger.info(f"Simulated publish of result {package_id} to {req.channel}")
    return format_listing(package, req.channel, slot.locations_text)


@router.post(
    "/results/{interest_id}/packages/{package_id}/save",
    status_code=201,
    response_model=PackageResponse,
)
async def save_result_package(
    interest_id: uuid.UUID,
    package_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Providers keep an ephemeral result as a proposed package."""
    _, package = _find_result(user, interest_id, package_id)
    saved = await package_service.save_proposal(db, user, package)
    await cache_service.invalidate_trending()
    return saved


@proxy_router.post("/search-packages", response_model=list[RecommendedPackage])
async def search_packages(
    req: SearchPackagesPayload,
    user: User = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
):
    """Forward a raw search body to the recommendation service."""
    return await search_dispatcher.search_raw(req, token)


@proxy_router.post("/suggest-tour")
async def suggest_tour(
    req: SuggestTourPayload,
    user: User = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
):
    packages = await search_dispatcher.suggest(req, token)
    logger.info(f"Tour suggestions for {req.location_id}: {len(packages)} packages")
    return {"packages": packages}
