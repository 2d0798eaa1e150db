"""Pydantic request/response models for the Mezame API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DeviceModel(BaseModel):
    name: str
    mac: str
    ip: Optional[str] = None
    broadcast: Optional[str] = None


class DeviceUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    mac: Optional[str] = None
    ip: Optional[str] = None
    broadcast: Optional[str] = None


class DeviceListResponse(BaseModel):
    devices: list[DeviceModel]
    count: int


class MessageResponse(BaseModel):
    message: str


class DeviceCreatedResponse(BaseModel):
    message: str
    device: DeviceModel


class WakeResultResponse(BaseModel):
    success: bool
    device: str
    mac: str
    message: str


class WakeSummary(BaseModel):
    total: int
    successful: int
    failed: int


class WakeMultipleRequest(BaseModel):
    devices: list[str]


class WakeMultipleResponseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    results: list[WakeResultResponse]
    summary: WakeSummary
    not_found: Optional[list[str]] = Field(default=None, alias="notFound")


class HealthResponse(BaseModel):
    status: str
    devices: int
