"""Per-session search result state, keyed by user then interest."""

import time
import uuid
from dataclasses import dataclass, field

from app.schemas.search import RecommendedPackage


@dataclass
class InterestResults:
    """Result slot for one interest: idle → searching → results-available | no-results."""
    locations_text: str = ""
    packages: list[RecommendedPackage] | None = None
    searching: bool = False
    attempted: bool = False
    last_error: str | None = None
    search_token: int = 0

    @property
    def status(self) -> str:
        if self.searching:
            return "searching"
        if self.packages:
            return "results-available"
        if self.packages is not None or self.attempted:
            return "no-results"
        return "idle"

    def find(self, package_id: str) -> RecommendedPackage | None:
        for pkg in self.packages or []:
            if pkg.id == package_id:
                return pkg
        return None


@dataclass
class SessionResults:
    interests: dict[uuid.UUID, InterestResults] = field(default_factory=dict)
    touched_at: float = field(default_factory=time.monotonic)


class SearchResultStore:
    """In-process result map. Nothing here is persisted."""

    def __init__(self):
        self._sessions: dict[uuid.UUID, SessionResults] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()

    def _session(self, user_id: uuid.UUID) -> SessionResults:
        session = self._sessions.get(user_id)
        if session is None:
            session = self._sessions[user_id] = SessionResults()
        session.touched_at = time.monotonic()
        return session

    def entry(self, user_id: uuid.UUID, interest_id: uuid.UUID) -> InterestResults:
        """Get or create the slot for an interest."""
        interests = self._session(user_id).interests
        slot = interests.get(interest_id)
        if slot is None:
            slot = interests[interest_id] = InterestResults()
        return slot

    def get(self, user_id: uuid.UUID, interest_id: uuid.UUID) -> InterestResults | None:
        session = self._sessions.get(user_id)
        if session is None:
            return None
        session.touched_at = time.monotonic()
        return session.interests.get(interest_id)

    def replace(
        self,
        user_id: uuid.UUID,
        interest_id: uuid.UUID,
        packages: list[RecommendedPackage],
        locations_text: str,
    ) -> InterestResults:
        """Overwrite the stored packages for an interest. Never appends."""
        slot = self.entry(user_id, interest_id)
        slot.packages = list(packages)
        slot.locations_text = locations_text
        slot.last_error = None
        return slot

    def discard(self, user_id: uuid.UUID, interest_id: uuid.UUID) -> bool:
        session = self._sessions.get(user_id)
        if session is None:
            return False
        return session.interests.pop(interest_id, None) is not None

    def all_for(self, user_id: uuid.UUID) -> dict[uuid.UUID, InterestResults]:
        session = self._sessions.get(user_id)
        if session is None:
            return {}
        session.touched_at = time.monotonic()
        return dict(session.interests)

    def evict_idle(self, ttl_seconds: float, now: float | None = None) -> int:
        """Drop sessions untouched for longer than ttl_seconds. Returns the count evicted."""
        now = time.monotonic() if now is None else now
        expired = [
            uid for uid, s in self._sessions.items()
            if now - s.touched_at > ttl_seconds
            and not any(slot.searching for slot in s.interests.values())
        ]
        for uid in expired:
            del self._sessions[uid]
        return len(expired)


search_result_store = SearchResultStore()
