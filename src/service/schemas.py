"""Pydantic schemas for the user-user CF HTTP API."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

# External ids are integers for numeric files, strings otherwise.
ExternalId = Union[int, str]


class RecommendRequest(BaseModel):
    """Request for top-N recommendations."""

    userId: ExternalId = Field(..., description="External user id (first column of the ratings file)")
    n: int = Field(10, ge=0, le=500, description="Number of recommendations to return")


class RecommendationItem(BaseModel):
    itemId: ExternalId
    score: float
    title: Optional[str] = None


class RecommendResponse(BaseModel):
    userId: ExternalId
    requested: int = Field(..., description="n as requested")
    available: int = Field(..., description="How many recommendations were produced (<= requested)")
    results: list[RecommendationItem]


class PredictRequest(BaseModel):
    userId: ExternalId
    itemId: ExternalId


class PredictResponse(BaseModel):
    userId: ExternalId
    itemId: ExternalId
    score: float


class SimilarUsersRequest(BaseModel):
    """Request for users with similar rating patterns."""

    userId: ExternalId
    top_n: int = Field(10, ge=0, le=500, description="Number of similar users to return")


class SimilarUserItem(BaseModel):
    userId: ExternalId
    similarity: float
    common_rated: int


class SimilarUsersResponse(BaseModel):
    userId: ExternalId
    top_n: int
    results: list[SimilarUserItem]


class RMSEResponse(BaseModel):
    mode: Literal["leave_one_out", "in_sample"]
    rmse: float
    count: int


class HealthResponse(BaseModel):
    status: str
    users: int
    items: int
    ratings: int
