"""Seed script for the Travel Buddy development database."""

import asyncio

from passlib.context import CryptContext
from sqlalchemy import select

from app.database import async_session_factory, init_db
from app.models.location import Location
from app.models.package import TravelPackage
from app.models.user import User, UserProfile
from app.services.package_service import extract_highlights

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# ── Users ──────────────────────────────────────────────────────────────────────

USERS = [
    {"email": "traveler@travelbuddy.dev", "password": "password123", "full_name": "Linh Tran", "role": "traveler"},
    {"email": "provider@travelbuddy.dev", "password": "password123", "full_name": "Saigon Tours", "role": "provider"},
    {"email": "admin@travelbuddy.dev", "password": "password123", "full_name": "Admin User", "role": "admin"},
]

# ── Locations ──────────────────────────────────────────────────────────────────

LOCATIONS = [
    ("hanoi-vietnam", "Hanoi", "Vietnam", ["city", "food", "history"], "Capital city with a thousand-year-old quarter and street food everywhere."),
    ("ha-long-bay-vietnam", "Ha Long Bay", "Vietnam", ["nature", "cruise", "islands"], "Emerald waters and limestone karsts in the Gulf of Tonkin."),
    ("hoi-an-vietnam", "Hoi An", "Vietnam", ["heritage", "beach", "tailoring"], "Lantern-lit trading port on the Thu Bon river."),
    ("da-lat-vietnam", "Da Lat", "Vietnam", ["mountains", "hiking", "coffee"], "Highland town of pine forests and waterfalls."),
    ("bangkok-thailand", "Bangkok", "Thailand", ["city", "temples", "nightlife"], "Temples, canals and night markets."),
    ("bali-indonesia", "Bali", "Indonesia", ["beach", "surf", "wellness"], "Rice terraces, surf breaks and yoga retreats."),
    ("kyoto-japan", "Kyoto", "Japan", ["culture", "temples", "gardens"], "Former imperial capital of shrines and tea houses."),
]

# ── Provider packages ──────────────────────────────────────────────────────────

PACKAGES = [
    {
        "title": "Hanoi Street Food & Old Quarter",
        "location_id": "hanoi-vietnam",
        "price": 349,
        "duration_days": 3,
        "description": "Eat your way through the Old Quarter with a local guide.\n\n◯ Evening food tour\n\n◯ Water puppet show\n\n◯ Cyclo ride",
        "image_url": "https://placehold.co/800x450?text=Hanoi",
        "interested_count": 120,
    },
    {
        "title": "Ha Long Bay Overnight Cruise",
        "location_id": "ha-long-bay-vietnam",
        "price": 289,
        "duration_days": 2,
        "description": "Sleep aboard a junk among the karsts.\n\n◯ Kayaking in hidden lagoons\n\n◯ Sunset on deck\n\n◯ Cave visit",
        "image_url": "https://placehold.co/800x450?text=Ha+Long+Bay",
        "interested_count": 310,
    },
    {
        "title": "Da Lat Highlands Trek",
        "location_id": "da-lat-vietnam",
        "price": 420,
        "duration_days": 4,
        "description": "Pine forests, waterfalls and coffee farms.\n\n◯ Guided hikes\n\n◯ Canyoning\n\n◯ Coffee farm stay",
        "image_url": "https://placehold.co/800x450?text=Da+Lat",
        "interested_count": 85,
    },
    {
        "title": "Hoi An Lanterns & Beaches",
        "location_id": "hoi-an-vietnam",
        "price": 510,
        "duration_days": 5,
        "description": "Old town by night, An Bang beach by day.\n\n◯ Lantern making class\n\n◯ Basket boat ride\n\n◯ Beach day",
        "image_url": "https://placehold.co/800x450?text=Hoi+An",
        "interested_count": 205,
    },
]


async def seed():
    async with async_session_factory() as db:
        # Check if already seeded
        result = await db.execute(select(User).limit(1))
        if result.scalar_one_or_none():
            print("Database already seeded. Skipping.")
            return

        # ── Users ──
        users = {}
        for u in USERS:
            user = User(
                email=u["email"],
                password_hash=pwd_context.hash(u["password"]),
                full_name=u["full_name"],
                role=u["role"],
            )
            db.add(user)
            users[u["role"]] = user
        await db.flush()  # assign ids
        for user in users.values():
            db.add(UserProfile(id=user.id, full_name=user.full_name, role=user.role))
        print(f"Created {len(USERS)} users ({', '.join(u['email'] for u in USERS)})")

        # ── Locations ──
        for loc_id, name, country, tags, description in LOCATIONS:
            db.add(Location(id=loc_id, name=name, country=country, tags=tags, description=description))
        await db.flush()
        print(f"Created {len(LOCATIONS)} locations")

        # ── Packages ──
        provider = users["provider"]
        for p in PACKAGES:
            db.add(TravelPackage(provider_id=provider.id, highlights=extract_highlights(p["description"]), **p))
        print(f"Created {len(PACKAGES)} provider packages")

        await db.commit()
        print("Seed complete.")


if __name__ == "__main__":
    async def _main():
        await init_db()
        await seed()

    asyncio.run(_main())
