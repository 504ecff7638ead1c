"""Interest service — create, list and delete a user's travel interests."""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFound, OwnershipMismatch, UpstreamFailure, ValidationFailure
from app.models.interest import UserInterest
from app.models.location import Location
from app.models.user import User, UserProfile
from app.schemas.interest import CreateInterestRequest, InterestWithLocations
from app.schemas.location import LocationResponse

logger = logging.getLogger(__name__)


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == "23503" or getattr(orig, "pgcode", None) == "23503":
        return True
    return "foreign key" in str(orig).lower()


def build_locations_text(locations: list[Location], free_text: str | None) -> str:
    """Join resolved locations ("Name, Country") and free text for display."""
    parts = [f"{loc.name}, {loc.country}" for loc in locations]
    if free_text:
        parts.append(free_text)
    return ", ".join(parts)


class InterestService:

    async def resolve_locations(self, db: AsyncSession, location_ids: list[str]) -> list[Location]:
        """Load the given locations in request order. Unknown ids raise ValidationFailure."""
        if not location_ids:
            return []
        result = await db.execute(select(Location).where(Location.id.in_(location_ids)))
        by_id = {loc.id: loc for loc in result.scalars().all()}
        missing = [lid for lid in location_ids if lid not in by_id]
        if missing:
            raise ValidationFailure(f"Unknown location: {', '.join(missing)}")
        return [by_id[lid] for lid in dict.fromkeys(location_ids)]

    async def ensure_profile(
        self, db: AsyncSession, user_id: uuid.UUID, full_name: str | None = None, role: str = "traveler"
    ) -> tuple[UserProfile, bool]:
        """Return the user's profile, creating it if missing. Second item is True if created."""
        profile = await db.get(UserProfile, user_id)
        if profile:
            return profile, False
        profile = UserProfile(id=user_id, full_name=full_name, role=role)
        db.add(profile)
        await db.commit()
        logger.info(f"Created profile for user {user_id}")
        return profile, True

    async def create_interest(self, db: AsyncSession, user: User, req: CreateInterestRequest) -> UserInterest:
        # rollback below expires 'user', so keep plain copies
        user_id, full_name, role = user.id, user.full_name, user.role
        if req.user_id != user_id:
            raise OwnershipMismatch("Unauthorized: User ID mismatch")

        locations = await self.resolve_locations(db, req.locations_id)
        fields = dict(
            user_id=user_id,
            locations_id=[loc.id for loc in locations],
            locations_text=build_locations_text(locations, req.locations_free_text),
            budget=Decimal(str(req.budget)),
            duration=req.duration,
            activities=req.activities,
            notes=req.notes,
        )

        try:
            return await self._insert(db, fields)
        except IntegrityError as e:
            await db.rollback()
            if not _is_foreign_key_violation(e):
                raise UpstreamFailure(f"Failed to save interest: {e.orig}") from e
            logger.warning(f"Interest insert for {user_id} hit a foreign key violation, provisioning profile")

        # one retry after provisioning the missing profile
        try:
            await self.ensure_profile(db, user_id, full_name, role)
            return await self._insert(db, fields)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Retry insert for {user_id} failed: {e}")
            raise UpstreamFailure(f"Failed to save interest: {e}") from e

    async def _insert(self, db: AsyncSession, fields: dict) -> UserInterest:
        interest = UserInterest(**fields)
        db.add(interest)
        await db.commit()
        await db.refresh(interest)
        return interest

    async def list_with_locations(self, db: AsyncSession, user_id: uuid.UUID) -> list[InterestWithLocations]:
        """All of a user's interests, each with its resolved locations."""
        result = await db.execute(
            select(UserInterest)
            .where(UserInterest.user_id == user_id)
            .order_by(UserInterest.created_at, UserInterest.id)
        )
        interests = result.scalars().all()
        if not interests:
            return []

        wanted = {lid for i in interests for lid in (i.locations_id or [])}
        by_id: dict[str, Location] = {}
        if wanted:
            loc_result = await db.execute(select(Location).where(Location.id.in_(sorted(wanted))))
            by_id = {loc.id: loc for loc in loc_result.scalars().all()}

        return [self._with_locations(i, by_id) for i in interests]

    async def get_owned(self, db: AsyncSession, interest_id: uuid.UUID, user: User) -> UserInterest:
        interest = await db.get(UserInterest, interest_id)
        if not interest:
            raise NotFound("Interest not found")
        if interest.user_id != user.id:
            raise OwnershipMismatch("Unauthorized: Not your interest")
        return interest

    async def get_with_locations(self, db: AsyncSession, interest_id: uuid.UUID, user: User) -> InterestWithLocations:
        interest = await self.get_owned(db, interest_id, user)
        locations = await self.resolve_existing(db, interest.locations_id or [])
        return self._with_locations(interest, {loc.id: loc for loc in locations})

    async def resolve_existing(self, db: AsyncSession, location_ids: list[str]) -> list[Location]:
        if not location_ids:
            return []
        result = await db.execute(select(Location).where(Location.id.in_(location_ids)))
        return list(result.scalars().all())

    async def delete_interest(self, db: AsyncSession, interest_id: uuid.UUID, user: User) -> None:
        interest = await self.get_owned(db, interest_id, user)
        try:
            await db.delete(interest)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise UpstreamFailure(f"Failed to delete interest: {e}") from e
        logger.info(f"Deleted interest {interest_id} for user {user.id}")

    @staticmethod
    def _with_locations(interest: UserInterest, by_id: dict[str, Location]) -> InterestWithLocations:
        base = InterestWithLocations.model_validate(interest)
        base.locations = [
            LocationResponse.model_validate(by_id[lid])
            for lid in (interest.locations_id or [])
            if lid in by_id
        ]
        return base


interest_service = InterestService()
