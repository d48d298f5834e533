"""Pydantic schemas for the online recommendation API."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field


# Ids may be integers or strings depending on the dataset.
EntityId = Union[int, str]


class PredictRequest(BaseModel):
    userId: EntityId
    itemId: EntityId


class PredictResponse(BaseModel):
    userId: EntityId
    itemId: EntityId
    available: bool
    rating: Optional[float] = None


class RecommendRequest(BaseModel):
    """Request for neighborhood CF recommendations."""

    userId: EntityId
    k: int = Field(10, ge=1, le=500, description="Number of recommendations to return")
    exclude_rated: bool = Field(True, description="Skip items the user already rated")


class RecommendationItem(BaseModel):
    itemId: EntityId
    score: float


class RecommendResponse(BaseModel):
    userId: EntityId
    k: int
    results: list[RecommendationItem]


class NeighborsRequest(BaseModel):
    """Similar users (user-based) or similar items (item-based)."""

    id: EntityId
    top_n: int = Field(10, ge=1, le=500)


class NeighborItem(BaseModel):
    id: EntityId
    similarity: float


class NeighborsResponse(BaseModel):
    id: EntityId
    orientation: str
    results: list[NeighborItem]


class AddUserRequest(BaseModel):
    userId: EntityId


class AddItemRequest(BaseModel):
    itemId: EntityId


class AddRatingRequest(BaseModel):
    userId: EntityId
    itemId: EntityId
    rating: float


class MutationResponse(BaseModel):
    added: bool


class HealthResponse(BaseModel):
    status: str
    orientation: str
    users: int
    items: int
