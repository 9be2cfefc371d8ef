"""Location Schemas — range checks live in LocationService (BadValuesError)."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class LocationCreate(BaseModel):
    longitude: float
    latitude: float


class LocationUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    longitude: float | None = None
    latitude: float | None = None


class LocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    longitude: float
    latitude: float


class NearbyLocation(LocationResponse):
    distance_meters: float
