import uuid

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.location import LocationResponse


class CreateInterestRequest(BaseModel):
    """Preference payload submitted by the interest form.

    Locations come either from reference data (``location_id`` or
    ``locations_id``) or as free text; at least one must be present.
    """

    user_id: uuid.UUID
    location_id: str | None = None
    locations_id: list[str] = []
    locations_free_text: str | None = None
    budget: float = Field(ge=0)
    duration: int = Field(default=0, ge=0)
    activities: str
    notes: str | None = None

    @field_validator("activities")
    @classmethod
    def _activities_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("activities is required")
        return v

    @model_validator(mode="after")
    def _location_required(self):
        if self.location_id and self.location_id not in self.locations_id:
            self.locations_id = [self.location_id, *self.locations_id]
        if self.locations_free_text is not None:
            self.locations_free_text = self.locations_free_text.strip() or None
        if not self.locations_id and not self.locations_free_text:
            raise ValueError("at least one location is required")
        return self


class InterestResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    locations_id: list[str]
    locations_text: str
    budget: float
    duration: int
    activities: str
    notes: str | None = None

    model_config = {"from_attributes": True}


class InterestWithLocations(InterestResponse):
    locations: list[LocationResponse] = []
