"""Package service — provider-authored packages, proposals and discovery feeds."""

import logging
import random
import uuid
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFound, OwnershipMismatch, UpstreamFailure, ValidationFailure
from app.models.location import Location
from app.models.package import TravelPackage
from app.models.user import User
from app.schemas.package import PackageFields
from app.schemas.search import RecommendedPackage

logger = logging.getLogger(__name__)

HIGHLIGHT_MARKER = "◯"
PROVIDER_ROLES = ("provider", "admin")

RANDOM_POOL_SIZE = 20
RANDOM_SAMPLE_SIZE = 5
PROPOSED_LIMIT = 3
TRENDING_LIMIT = 10


def extract_highlights(description: str) -> list[str]:
    """Paragraphs of the description that start with the ◯ marker, marker stripped."""
    highlights = []
    for paragraph in (description or "").split("\n\n"):
        stripped = paragraph.strip()
        if stripped.startswith(HIGHLIGHT_MARKER):
            text = stripped.replace(HIGHLIGHT_MARKER, "", 1).strip()
            if text:
                highlights.append(text)
    return highlights


def require_provider(user: User) -> None:
    if user.role not in PROVIDER_ROLES:
        raise OwnershipMismatch("Provider access required")


class PackageService:

    async def list_packages(
        self, db: AsyncSession, provider_id: uuid.UUID | None = None, limit: int = 100
    ) -> list[TravelPackage]:
        query = select(TravelPackage).order_by(TravelPackage.created_at.desc(), TravelPackage.id).limit(limit)
        if provider_id is not None:
            query = query.where(TravelPackage.provider_id == provider_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_package(self, db: AsyncSession, package_id: uuid.UUID) -> TravelPackage:
        package = await db.get(TravelPackage, package_id)
        if not package:
            raise NotFound("Package not found")
        return package

    async def _check_location(self, db: AsyncSession, location_id: str | None) -> None:
        if location_id and not await db.get(Location, location_id):
            raise ValidationFailure(f"Unknown location: {location_id}")

    async def create_package(self, db: AsyncSession, user: User, req: PackageFields) -> TravelPackage:
        require_provider(user)
        await self._check_location(db, req.location_id)
        package = TravelPackage(
            title=req.title,
            provider_id=user.id,
            location_id=req.location_id,
            price=Decimal(str(req.price)),
            duration_days=req.duration_days,
            highlights=req.highlights if req.highlights is not None else extract_highlights(req.description),
            description=req.description,
            image_url=req.image_url,
        )
        return await self._save(db, package, "create")

    async def update_package(
        self, db: AsyncSession, user: User, package_id: uuid.UUID, req: PackageFields
    ) -> TravelPackage:
        require_provider(user)
        package = await self.get_package(db, package_id)
        if user.role != "admin" and package.provider_id != user.id:
            raise OwnershipMismatch("Unauthorized: Not your package")
        await self._check_location(db, req.location_id)

        package.title = req.title
        package.location_id = req.location_id
        package.price = Decimal(str(req.price))
        package.duration_days = req.duration_days
        package.description = req.description
        package.image_url = req.image_url
        package.highlights = req.highlights if req.highlights is not None else extract_highlights(req.description)
        return await self._save(db, package, "update")

    async def delete_package(self, db: AsyncSession, user: User, package_id: uuid.UUID) -> None:
        require_provider(user)
        package = await self.get_package(db, package_id)
        if user.role != "admin" and package.provider_id != user.id:
            raise OwnershipMismatch("Unauthorized: Not your package")
        try:
            await db.delete(package)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise UpstreamFailure(f"Failed to delete package: {e}") from e

    async def save_proposal(
        self, db: AsyncSession, user: User, recommended: RecommendedPackage
    ) -> TravelPackage:
        """Persist an ephemeral search result as a proposed package owned by the provider."""
        require_provider(user)
        location_id = recommended.location_id
        if location_id and not await db.get(Location, location_id):
            location_id = None
        package = TravelPackage(
            title=recommended.title,
            provider_id=user.id,
            location_id=location_id,
            price=Decimal(str(recommended.price)),
            duration_days=max(recommended.duration_days, 1),
            highlights=list(recommended.highlights),
            description=recommended.description,
            image_url=recommended.image_url,
            is_ai_generated=recommended.is_ai_generated,
            is_proposed=True,
        )
        return await self._save(db, package, "propose")

    async def random_packages(self, db: AsyncSession, rng: random.Random | None = None) -> list[TravelPackage]:
        """Up to five packages sampled from a pool of twenty."""
        result = await db.execute(select(TravelPackage).limit(RANDOM_POOL_SIZE))
        pool = list(result.scalars().all())
        rng = rng or random.Random()
        return rng.sample(pool, min(RANDOM_SAMPLE_SIZE, len(pool)))

    async def proposed_packages(self, db: AsyncSession) -> list[TravelPackage]:
        result = await db.execute(
            select(TravelPackage)
            .where(TravelPackage.is_proposed.is_(True))
            .order_by(TravelPackage.created_at.desc(), TravelPackage.id.desc())
            .limit(PROPOSED_LIMIT)
        )
        return list(result.scalars().all())

    async def trending_packages(self, db: AsyncSession) -> list[TravelPackage]:
        result = await db.execute(
            select(TravelPackage)
            .order_by(TravelPackage.interested_count.desc(), TravelPackage.created_at.desc())
            .limit(TRENDING_LIMIT)
        )
        return list(result.scalars().all())

    async def mark_interested(self, db: AsyncSession, package_id: uuid.UUID) -> TravelPackage:
        package = await self.get_package(db, package_id)
        await db.execute(
            update(TravelPackage)
            .where(TravelPackage.id == package_id)
            .values(interested_count=TravelPackage.interested_count + 1)
        )
        await db.commit()
        await db.refresh(package)
        return package

    async def _save(self, db: AsyncSession, package: TravelPackage, action: str) -> TravelPackage:
        try:
            db.add(package)
            await db.commit()
            await db.refresh(package)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Package {action} failed: {e}")
            raise UpstreamFailure(f"Failed to save package: {e}") from e
        logger.info(f"Package {action}: {package.id} ({package.title})")
        return package


package_service = PackageService()
