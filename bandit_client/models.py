"""Pydantic models for cached assignments and service payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Assignment(BaseModel):
    """The variant a participant is locked into for one experiment.

    The experiment id is deliberately absent: it is the key the record is
    stored under.
    """

    model_config = ConfigDict(populate_by_name=True)

    variant_id: str = Field(alias="variantId", min_length=1)
    reported: bool = False


class DesignateRequest(BaseModel):
    versions: list[str]


class DesignateResponse(BaseModel):
    winning: str = Field(min_length=1)


class WinRequest(BaseModel):
    version: str
