from pydantic import BaseModel, Field


class LocationBase(BaseModel):
    name: str = Field(min_length=1)
    country: str = Field(min_length=1)
    tags: list[str] = []
    description: str = ""


class CreateLocationRequest(LocationBase):
    id: str | None = Field(default=None, max_length=64)


class LocationResponse(LocationBase):
    id: str

    model_config = {"from_attributes": True}
