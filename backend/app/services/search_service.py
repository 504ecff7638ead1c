"""Search dispatcher — runs an interest against the recommendation service and stores the results."""

import asyncio
import logging
import uuid

from app.config import settings
from app.errors import UpstreamFailure
from app.models.interest import UserInterest
from app.schemas.search import RecommendedPackage, SearchPackagesPayload, SuggestTourPayload
from app.services.recommendation_client import (
    RecommendationClient,
    mark_ai_generated,
    recommendation_client,
)
from app.services.search_results import InterestResults, SearchResultStore, search_result_store

logger = logging.getLogger(__name__)

DEFAULT_BUDGET_RANGE = "$500-$1000"
DEFAULT_DURATION = "around 5 days"


def build_search_payload(interest: UserInterest, match_count: int | None = None) -> SearchPackagesPayload:
    """Translate a saved interest into the recommendation service's search body."""
    budget = float(interest.budget or 0)
    activities = interest.activities or ""
    return SearchPackagesPayload(
        location_input=interest.locations_text or "",
        budget_input=f"{budget:.0f}",
        activities_input=activities,
        preferred_activities=activities,
        budget_range=f"up to ${budget:,.0f}" if budget > 0 else DEFAULT_BUDGET_RANGE,
        duration_adjustment=f"around {interest.duration} days" if interest.duration else DEFAULT_DURATION,
        match_count=match_count or settings.search_match_count,
        num_suggestions=settings.suggest_num_suggestions,
    )


class SearchDispatcher:
    """Dispatches interest searches and owns the searching indicator.

    A dispatched search runs in its own task and is shielded from the caller:
    if the request goes away the search still completes and stores its
    results. The indicator is cleared on a timer after completion, not by the
    response.
    """

    def __init__(
        self,
        client: RecommendationClient | None = None,
        store: SearchResultStore | None = None,
        indicator_delay: float | None = None,
    ):
        self.client = client or recommendation_client
        self.store = store or search_result_store
        self.indicator_delay = (
            settings.search_indicator_delay_seconds if indicator_delay is None else indicator_delay
        )
        self._tasks: set[asyncio.Task] = set()

    async def dispatch(self, user_id: uuid.UUID, interest: UserInterest, token: str | None = None) -> InterestResults:
        slot = self.store.entry(user_id, interest.id)
        slot.search_token += 1
        slot.searching = True
        slot.attempted = True

        task = asyncio.create_task(self._run(user_id, interest, token, slot, slot.search_token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return await asyncio.shield(task)

    async def _run(
        self,
        user_id: uuid.UUID,
        interest: UserInterest,
        token: str | None,
        slot: InterestResults,
        search_token: int,
    ) -> InterestResults:
        payload = build_search_payload(interest)
        try:
            packages = await self.client.search_travel_packages(payload, token)
            packages = mark_ai_generated(packages)
            if self.store.get(user_id, interest.id) is not slot:
                # the interest was deleted while the search ran
                logger.info(f"Search for interest {interest.id} finished after its results were discarded, dropping")
                slot.packages = packages
                slot.locations_text = interest.locations_text
                return slot
            self.store.replace(user_id, interest.id, packages, interest.locations_text)
            logger.info(f"Search for interest {interest.id}: {len(packages)} packages")
            return slot
        except UpstreamFailure as e:
            # prior results for this interest stay as they were
            logger.error(f"Search for interest {interest.id} failed: {e.message}")
            slot.last_error = e.message
            raise
        finally:
            self._schedule_clear(slot, search_token)

    def _schedule_clear(self, slot: InterestResults, search_token: int) -> None:
        if self.indicator_delay <= 0:
            self._clear(slot, search_token)
            return
        asyncio.get_running_loop().call_later(self.indicator_delay, self._clear, slot, search_token)

    @staticmethod
    def _clear(slot: InterestResults, search_token: int) -> None:
        # a newer search on the same interest owns the indicator now
        if slot.search_token == search_token:
            slot.searching = False

    async def suggest(self, payload: SuggestTourPayload, token: str | None = None) -> list[RecommendedPackage]:
        packages = await self.client.suggest_tour(payload, token)
        return mark_ai_generated(packages)

    async def search_raw(self, payload: SearchPackagesPayload, token: str | None = None) -> list[RecommendedPackage]:
        return await self.client.search_travel_packages(payload, token)


search_dispatcher = SearchDispatcher()
