"""Pydantic models for upstream payloads."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

SUCCESS_STATUS = "success"


class Location(BaseModel):
    """IP geolocation result."""

    model_config = ConfigDict(extra="ignore")

    status: str = Field(default="", description="Lookup status, 'success' or 'fail'")
    lat: float = Field(default=0.0, strict=True, description="Latitude")
    lon: float = Field(default=0.0, strict=True, description="Longitude")
    city: str = Field(default="", description="City name")
    country: str = Field(default="", description="Country name")
    message: str | None = Field(default=None, description="Failure reason sent with a 'fail' status")

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS_STATUS


class WeatherResponse(BaseModel):
    """Current weather payload, passed through as received."""

    model_config = ConfigDict(extra="ignore")

    metadata: Any = Field(default=None, description="Provider metadata")
    units: Any = Field(default=None, description="Units of the reported values")
    data_current: Any = Field(default=None, description="Current conditions")

    @model_validator(mode="after")
    def check_json_compliant(self) -> "WeatherResponse":
        # Out of range numbers such as 1e400 decode to inf and cannot be re-encoded
        try:
            json.dumps(self.model_dump(), allow_nan=False)
        except ValueError as e:
            raise ValueError(f"payload is not JSON compliant: {e}") from e
        return self
