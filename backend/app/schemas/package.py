import uuid
from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field

PublishChannel = Literal["facebook_marketplace", "whatsapp", "messenger"]


class PackageFields(BaseModel):
    title: str = Field(min_length=1)
    location_id: str = Field(min_length=1)
    price: float = Field(ge=0)
    duration_days: int = Field(ge=1)
    description: str = Field(min_length=1)
    image_url: str = Field(min_length=1)
    highlights: list[str] | None = None


class CreatePackageRequest(PackageFields):
    pass


class UpdatePackageRequest(PackageFields):
    pass


class PackageResponse(BaseModel):
    id: uuid.UUID
    title: str
    provider_id: uuid.UUID
    location_id: str | None
    price: float
    duration_days: int
    highlights: list[str]
    description: str
    image_url: str | None
    is_ai_generated: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_ai_generated", "isAIGenerated"),
        serialization_alias="isAIGenerated",
    )
    is_proposed: bool = False
    interested_count: int = 0
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class PublishRequest(BaseModel):
    channel: PublishChannel


class PublishResponse(BaseModel):
    channel: PublishChannel
    simulated: bool = True
    title: str
    body: str
    share_text: str
