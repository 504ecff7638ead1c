"""Shapes stored search results for display: grouping, pagination, publish formatting."""

import math
import uuid
from typing import Any

from app.schemas.package import PublishResponse
from app.schemas.search import ResultGroup, ResultsResponse
from app.services.search_results import InterestResults

NO_SEARCHES_MESSAGE = "Search one of your travel interests to see matching packages."
NO_RESULTS_MESSAGE = "No packages found for this interest yet. Try adjusting your budget or activities."
SEARCHING_MESSAGE = "Searching for packages..."

CHANNEL_LABELS = {
    "facebook_marketplace": "Facebook Marketplace",
    "whatsapp": "WhatsApp",
    "messenger": "Messenger",
}


def paginate(items: list, page: int, page_size: int) -> tuple[list, int, int]:
    """Return (page_items, clamped_page, total_pages). Pages are 1-based."""
    page_size = max(page_size, 1)
    total_pages = max(math.ceil(len(items) / page_size), 1)
    page = min(max(page, 1), total_pages)
    start = (page - 1) * page_size
    return items[start:start + page_size], page, total_pages


def present_group(
    interest_id: uuid.UUID,
    slot: InterestResults | None,
    view: str = "grid",
    page: int = 1,
    page_size: int = 3,
) -> ResultGroup:
    packages = list(slot.packages or []) if slot else []
    status = slot.status if slot else "idle"

    if view == "carousel":
        shown, page, total_pages = packages, 1, 1
        page_size = len(packages)
    else:
        shown, page, total_pages = paginate(packages, page, page_size)

    empty_message = None
    if not packages:
        empty_message = SEARCHING_MESSAGE if status == "searching" else NO_RESULTS_MESSAGE

    return ResultGroup(
        interest_id=interest_id,
        locations_text=slot.locations_text if slot else "",
        status=status,
        packages=shown,
        page=page,
        page_size=page_size,
        total=len(packages),
        total_pages=total_pages,
        empty_message=empty_message,
    )


def present_results(
    results: dict[uuid.UUID, InterestResults],
    view: str = "grid",
    page: int = 1,
    page_size: int = 3,
) -> ResultsResponse:
    groups = [
        present_group(interest_id, slot, view=view, page=page, page_size=page_size)
        for interest_id, slot in results.items()
    ]
    return ResultsResponse(
        view=view,
        groups=groups,
        empty_message=None if groups else NO_SEARCHES_MESSAGE,
    )


def format_listing(package: Any, channel: str, location_text: str | None = None) -> PublishResponse:
    """Render a package for an external channel. Nothing is sent anywhere."""
    title = package.title
    price = float(package.price or 0)
    days = int(package.duration_days or 0)
    highlights = list(package.highlights or [])
    description = (package.description or "").strip()
    image_url = package.image_url

    price_text = f"${price:,.0f}"
    duration_text = f"{days} day{'s' if days != 1 else ''}" if days else ""
    where = f" in {location_text}" if location_text else ""

    if channel == "facebook_marketplace":
        lines = [description] if description else []
        if highlights:
            lines.append("Highlights:\n" + "\n".join(f"• {h}" for h in highlights))
        meta = " · ".join(p for p in (price_text, duration_text) if p)
        lines.append(meta)
        if image_url:
            lines.append(image_url)
        listing_title = f"{title} - {price_text}"
        body = "\n\n".join(lines)
    elif channel == "whatsapp":
        lines = [f"*{title}*", f"Price: {price_text}" + (f" | {duration_text}" if duration_text else "")]
        lines.extend(f"- {h}" for h in highlights)
        if description:
            lines.extend(["", description])
        listing_title = title
        body = "\n".join(lines)
    else:
        listing_title = title
        body = f"{title}{where}: {duration_text + ' for ' if duration_text else ''}{price_text}."
        if highlights:
            body += " Includes " + ", ".join(highlights[:3]) + "."

    share_text = f"Check out \"{title}\"{where} for {price_text} on {CHANNEL_LABELS[channel]}!"
    return PublishResponse(
        channel=channel,
        simulated=True,
        title=listing_title,
        body=body,
        share_text=share_text,
    )
