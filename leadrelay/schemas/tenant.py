from typing import List

from pydantic import BaseModel, Field, field_validator


class Location(BaseModel):
    id: str
    name: str = ""

    @field_validator("id", mode="before")
    def _id_as_string(cls, value):
        # ids stay exact strings; ints are converted without passing through float
        if isinstance(value, bool):
            raise ValueError("location id must be a string or integer")
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("name", mode="before")
    def _none_name(cls, value):
        return "" if value is None else value


class TenantConfig(BaseModel):
    locations: List[Location] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)
