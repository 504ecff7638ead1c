import uuid
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, model_validator

SearchStatus = Literal["idle", "searching", "results-available", "no-results"]


class RecommendedPackage(BaseModel):
    """A package as returned by the recommendation service.

    The upstream shape is loose: unknown keys are dropped and most fields
    default so a partially filled package still renders.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str = "Untitled package"
    provider_id: str | None = None
    location_id: str | None = None
    price: float = 0
    duration_days: int = 0
    highlights: list[str] = []
    description: str = ""
    image_url: str | None = None
    is_ai_generated: bool = Field(
        default=False,
        validation_alias=AliasChoices("isAIGenerated", "is_ai_generated"),
        serialization_alias="isAIGenerated",
    )

    model_config = {"extra": "ignore", "coerce_numbers_to_str": True}

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        # upstream sends null for missing fields; let the defaults apply
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class SearchPackagesPayload(BaseModel):
    """Body accepted by POST /search-travel-packages upstream."""

    location_input: str = ""
    budget_input: str = ""
    accommodation_input: str = "standard"
    activities_input: str = ""
    num_participants: int = 1
    preferred_activities: str = ""
    accommodation_preference: str = "standard"
    budget_range: str = ""
    duration_adjustment: str = ""
    match_count: int = 3
    num_suggestions: int = 3


class UserPreferences(BaseModel):
    budget_range: str | None = None
    duration_preference: str | None = None
    activity_types: list[str] | None = None


class SuggestTourPayload(BaseModel):
    location_id: str
    user_preferences: UserPreferences | None = None
    num_suggestions: int = 3


class SearchDispatchResponse(BaseModel):
    interest_id: uuid.UUID
    status: SearchStatus
    packages: list[RecommendedPackage]


class ResultGroup(BaseModel):
    interest_id: uuid.UUID
    locations_text: str
    status: SearchStatus
    packages: list[RecommendedPackage]
    page: int
    page_size: int
    total: int
    total_pages: int
    empty_message: str | None = None


class ResultsResponse(BaseModel):
    view: Literal["grid", "carousel"]
    groups: list[ResultGroup]
    empty_message: str | None = None


class SearchStatusResponse(BaseModel):
    interest_id: uuid.UUID
    status: SearchStatus
    last_error: str | None = None
