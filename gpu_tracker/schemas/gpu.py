"""Request and response shapes for the GPU endpoints.

Stored records are passed around as plain dicts so that fields written by
other tools survive a load/save cycle untouched. The models below describe the
wire format and the minimum layout the JSON document must have.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


class AdditionalInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    memory: Optional[str] = None
    release_year: Optional[int] = None
    purchase_date: Optional[str] = None


class GpuOut(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: StrictInt = Field(ge=0)
    vendor: Optional[str] = None
    name: Optional[str] = None
    generation: Optional[str] = None
    serial_number: Optional[str] = None
    owner: Optional[str] = None
    borrowee: Optional[str] = None
    status: Optional[str] = None
    additional_info: Optional[AdditionalInfo] = None


class GpuCollection(BaseModel):
    model_config = ConfigDict(extra="allow")

    gpus: List[GpuOut]


class GpuDatabaseDocument(BaseModel):
    """Top-level layout of ``gpu_database.json``."""

    model_config = ConfigDict(extra="allow")

    gpu_database: GpuCollection


class GpuCreate(BaseModel):
    """Fields accepted when registering a GPU.

    Everything is optional at this layer; required-field checks happen in
    ``crud.gpus`` so the response can list every missing name at once.
    """

    vendor: Optional[str] = None
    name: Optional[str] = None
    generation: Optional[str] = None
    serial_number: Optional[str] = None
    owner: Optional[str] = None
    borrowee: Optional[str] = None
    status: Optional[str] = None
    memory: Optional[str] = None
    release_year: Optional[int] = None
    purchase_date: Optional[str] = None

    @field_validator("release_year", mode="before")
    @classmethod
    def blank_year_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class GpuStatusUpdate(BaseModel):
    status: Optional[str] = None


class GpuCreated(BaseModel):
    message: str
    id: int
    gpu: GpuOut


class HealthOut(BaseModel):
    status: str
    message: str
    timestamp: str
