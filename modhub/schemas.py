"""
Pydantic schemas for stored records and request payloads.

Field names are camelCase because they are stored and served verbatim.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ActivityAction = Literal["create", "update", "delete", "download", "upload"]


class ModPayload(BaseModel):
    """Body of admin create/update calls; required-ness is checked by validate_mod."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None
    downloadUrl: Optional[str] = None
    image: Optional[str] = None
    featured: Optional[bool] = None


class Mod(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    description: str
    version: str
    downloadUrl: str
    image: str = ""
    featured: bool = False
    downloads: int = Field(default=0, ge=0)
    createdAt: str
    updatedAt: str


class Stats(BaseModel):
    model_config = ConfigDict(extra="allow")

    totalDownloads: int = 0
    todayDownloads: int = 0
    lastReset: str


class StatsSummary(BaseModel):
    totalMods: int
    totalDownloads: int
    todayDownloads: int


class Image(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    url: str
    size: int = 0
    uploadedAt: str


class Activity(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    action: ActivityAction
    details: str
    timestamp: str
