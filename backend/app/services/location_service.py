"""Location service — read-mostly reference data, cached in Redis."""

import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFound, OwnershipMismatch, ValidationFailure
from app.models.location import Location
from app.models.user import User
from app.schemas.location import CreateLocationRequest, LocationResponse
from app.services.cache_service import cache_service

logger = logging.getLogger(__name__)


def slugify(name: str, country: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", f"{name} {country}".lower()).strip("-")
    return slug[:64] or "location"


class LocationService:

    async def list_locations(self, db: AsyncSession) -> list[LocationResponse]:
        cached = await cache_service.get_locations()
        if cached is not None:
            return [LocationResponse.model_validate(row) for row in cached]

        result = await db.execute(select(Location).order_by(Location.name))
        locations = [LocationResponse.model_validate(loc) for loc in result.scalars().all()]
        await cache_service.set_locations([loc.model_dump() for loc in locations])
        return locations

    async def get_location(self, db: AsyncSession, location_id: str) -> Location:
        location = await db.get(Location, location_id)
        if not location:
            raise NotFound("Location not found")
        return location

    async def create_location(self, db: AsyncSession, user: User, req: CreateLocationRequest) -> Location:
        if user.role != "admin":
            raise OwnershipMismatch("Admin access required")

        location = Location(
            id=req.id or slugify(req.name, req.country),
            name=req.name,
            country=req.country,
            tags=req.tags,
            description=req.description,
        )
        db.add(location)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ValidationFailure(f"Location already exists: {req.id or slugify(req.name, req.country)}") from e
        await db.refresh(location)
        await cache_service.invalidate_locations()
        logger.info(f"Location created: {location.id}")
        return location


location_service = LocationService()
