"""Packages router — provider package management, discovery feeds and simulated publishing."""

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.location import Location
from app.models.user import User
from app.schemas.package import (
    CreatePackageRequest,
    PackageResponse,
    PublishRequest,
    PublishResponse,
    UpdatePackageRequest,
)
from app.services.cache_service import cache_service
from app.services.package_service import package_service
from app.services.result_presenter import format_listing

logger = logging.getLogger(__name__)

router = APIRouter()


def _serialize(packages) -> list[dict]:
    return [PackageResponse.model_validate(p).model_dump(mode="json", by_alias=True) for p in packages]


@router.get("")
async def list_packages(
    mine: bool = Query(False),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    packages = await package_service.list_packages(db, provider_id=user.id if mine else None, limit=limit)
    return {"packages": _serialize(packages)}


@router.get("/random")
async def random_packages(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {"packages": _serialize(await package_service.random_packages(db))}


@router.get("/proposed")
async def proposed_packages(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {"packages": _serialize(await package_service.proposed_packages(db))}


@router.get("/trending")
async def trending_packages(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cached = await cache_service.get_trending()
    if cached is not None:
        return {"packages": cached}
    packages = _serialize(await package_service.trending_packages(db))
    await cache_service.set_trending(packages)
    return {"packages": packages}


@router.get("/{package_id}", response_model=PackageResponse)
async def get_package(
    package_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await package_service.get_package(db, package_id)


@router.post("", status_code=201, response_model=PackageResponse)
async def create_package(
    req: CreatePackageRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    package = await package_service.create_package(db, user, req)
    await cache_service.invalidate_trending()
    return package


@router.put("/{package_id}", response_model=PackageResponse)
async def update_package(
    package_id: uuid.UUID,
    req: UpdatePackageRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    package = await package_service.update_package(db, user, package_id, req)
    await cache_service.invalidate_trending()
    return package


@router.delete("/{package_id}")
async def delete_package(
    package_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await package_service.delete_package(db, user, package_id)
    await cache_service.invalidate_trending()
    return {"success": True}


@router.post("/{package_id}/interested", response_model=PackageResponse)
async def mark_interested(
    package_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    package = await package_service.mark_interested(db, package_id)
    await cache_service.invalidate_trending()
    return package


@router.post("/{package_id}/publish", response_model=PublishResponse)
async def publish_package(
    package_id: uuid.UUID,
    req: PublishRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Format a package for an external channel. Nothing is posted."""
    package = await package_service.get_package(db, package_id)
    location = await db.get(Location, package.location_id) if package.location_id else None
    location_text = f"{location.name}, {location.country}" if location else None
    logger.info(f"Simulated publish of package {package_id} to {req.channel}")
    return format_listing(package, req.channel, location_text)
