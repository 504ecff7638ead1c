"""Recommendation service client — package search and tour suggestions with mock fallback."""

import hashlib
import logging
import random
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from app.config import settings
from app.errors import UpstreamFailure
from app.schemas.search import RecommendedPackage, SearchPackagesPayload, SuggestTourPayload

logger = logging.getLogger(__name__)

SEARCH_RESPONSE_KEYS = ("packages", "data")
SUGGEST_RESPONSE_KEYS = ("packages", "suggestions")


class RecommendationError(UpstreamFailure):
    default_message = "Failed to search packages"


class RecommendationResponseError(RecommendationError):
    default_message = "Unrecognised recommendation response"


def normalize_packages(body: Any, keys: Sequence[str] = SEARCH_RESPONSE_KEYS) -> list[RecommendedPackage]:
    """Unwrap a recommendation response into a typed package list.

    Accepted shapes are a bare JSON array, or an object holding the array under
    the first of ``keys`` that is present (``{"packages": [...]}``,
    ``{"data": [...]}`` for search). Anything else raises
    RecommendationResponseError, as does an array item that is not an object.
    """
    items: Any = None
    if isinstance(body, list):
        items = body
    elif isinstance(body, dict):
        for key in keys:
            if key in body and body[key] is not None:
                items = body[key]
                break

    if not isinstance(items, list):
        shape = sorted(body) if isinstance(body, dict) else type(body).__name__
        raise RecommendationResponseError(
            f"Unrecognised recommendation response shape: {shape}"
        )

    packages = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise RecommendationResponseError(f"Package #{i} is not an object")
        try:
            packages.append(RecommendedPackage.model_validate(item))
        except ValidationError as e:
            raise RecommendationResponseError(f"Package #{i} is malformed: {e.error_count()} errors") from e
    return packages


def mark_ai_generated(packages: list[RecommendedPackage]) -> list[RecommendedPackage]:
    """Flag the last package as algorithmically generated; the rest are catalog matches."""
    if not packages:
        return []
    marked = [p.model_copy(update={"is_ai_generated": False}) for p in packages[:-1]]
    marked.append(packages[-1].model_copy(update={"is_ai_generated": True}))
    return marked


class RecommendationClient:
    """Adapter for the external travel recommendation API."""

    def __init__(self, base_url: str | None = None, api_token: str | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        self._base_url = settings.recommendation_base_url if base_url is None else base_url
        self._api_token = settings.recommendation_api_token if api_token is None else api_token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._use_mock = not self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=settings.recommendation_timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def search_travel_packages(
        self, payload: SearchPackagesPayload, token: str | None = None
    ) -> list[RecommendedPackage]:
        """POST /search-travel-packages and normalise the result."""
        if self._use_mock:
            return self._generate_mock_packages(payload.location_input, payload.match_count)

        body = await self._post("/search-travel-packages", payload.model_dump(), token)
        return normalize_packages(body, SEARCH_RESPONSE_KEYS)

    async def suggest_tour(
        self, payload: SuggestTourPayload, token: str | None = None
    ) -> list[RecommendedPackage]:
        """POST /suggest-tour and normalise the result."""
        if self._use_mock:
            return self._generate_mock_packages(payload.location_id, payload.num_suggestions)

        body = await self._post("/suggest-tour", payload.model_dump(exclude_none=True), token)
        return normalize_packages(body, SUGGEST_RESPONSE_KEYS)

    async def _post(self, path: str, json_body: dict, token: str | None) -> Any:
        bearer = self._api_token or token
        headers = {"accept": "application/json", "cache-control": "no-cache"}
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"

        client = await self._get_client()
        try:
            resp = await client.post(path, json=json_body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Recommendation request {path} failed: {e}")
            raise RecommendationError(f"Recommendation service unreachable: {e}") from e

        if resp.is_error:
            logger.error(f"Recommendation {path} returned {resp.status_code}: {resp.text[:200]}")
            raise RecommendationError(self._error_message(resp))

        try:
            return resp.json()
        except ValueError as e:
            raise RecommendationResponseError("Recommendation response is not JSON") from e

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            data = resp.json()
        except ValueError:
            return f"Failed to search packages: {resp.status_code} {resp.text[:200]}"
        if isinstance(data, dict):
            detail = data.get("error") or data.get("detail")
            if isinstance(detail, str) and detail:
                return detail
        return f"Failed to search packages: {resp.status_code}"

    def _generate_mock_packages(self, location: str, count: int) -> list[RecommendedPackage]:
        """Generate deterministic mock packages for demo mode."""
        seed_str = f"{location}:{count}"
        rng = random.Random(int(hashlib.md5(seed_str.encode()).hexdigest()[:8], 16))
        place = location.split(",")[0].strip() or "Mystery Destination"

        themes = [
            ("Highlights of {place}", ["Guided city walk", "Local food tasting", "Sunset viewpoint"]),
            ("{place} Adventure Trek", ["Guided hikes", "Wildlife viewing", "Camping"]),
            ("{place} Culture & Heritage", ["Museum passes", "Historic quarter tour", "Cooking class"]),
            ("Relaxing {place} Getaway", ["Spa treatment", "Beach access", "Boat tour"]),
            ("{place} on a Budget", ["Hostel stay", "Street food crawl", "Free walking tour"]),
        ]
        packages = []
        for i in range(max(count, 0)):
            title, highlights = themes[rng.randrange(len(themes))]
            days = rng.randint(3, 10)
            packages.append(RecommendedPackage(
                id=hashlib.md5(f"{seed_str}:{i}".encode()).hexdigest()[:12],
                title=title.format(place=place),
                price=float(rng.randrange(400, 2500, 50)),
                duration_days=days,
                highlights=list(highlights),
                description=f"A {days}-day trip around {place}.",
                image_url=f"https://placehold.co/800x450?text={place.replace(' ', '+')}",
            ))
        return packages


recommendation_client = RecommendationClient()
