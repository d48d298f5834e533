"""FastAPI service entrypoint for the neighborhood recommender."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException

from ..config import load_config
from ..paths import get_repo_root
from ..pipelines.build import build_recommender
from ..recommender.errors import UnknownKeyError
from ..recommender.neighborhood import NeighborhoodRecommender
from ..utils import setup_logging
from .schemas import (
    AddItemRequest,
    AddRatingRequest,
    AddUserRequest,
    HealthResponse,
    MutationResponse,
    NeighborsRequest,
    NeighborsResponse,
    PredictRequest,
    PredictResponse,
    RecommendRequest,
    RecommendResponse,
)

logger = logging.getLogger(__name__)


def _get_env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or str(raw).strip() == "":
        return default
    p = Path(str(raw))
    return p if p.is_absolute() else (get_repo_root() / p).resolve()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    # A recommender injected before startup (tests, embedding apps) wins over the config.
    if getattr(app.state, "recommender", None) is None:
        repo_root = get_repo_root()
        config_path = _get_env_path("CONFIG_PATH", repo_root / "config.yaml")
        logger.info("Starting service with config=%s", config_path)
        app.state.recommender = build_recommender(load_config(config_path), repo_root=repo_root)
    yield


app = FastAPI(title="Neighborhood Collaborative Filtering Service", lifespan=lifespan)


def _recommender() -> NeighborhoodRecommender:
    rec = getattr(app.state, "recommender", None)
    if rec is None:
        raise HTTPException(status_code=503, detail="Recommender not initialized")
    return rec


@app.get("/health", response_model=HealthResponse)
def health() -> dict:
    rec = _recommender()
    return {
        "status": "ok",
        "orientation": rec.orientation,
        "users": rec.store.num_users(),
        "items": rec.store.num_items(),
    }


@app.post("/predict", response_model=PredictResponse)
def predict(req: PredictRequest) -> dict:
    """Predict a single rating; `available` is false when no neighbor qualifies."""
    rec = _recommender()
    try:
        rating = rec.predict(req.userId, req.itemId)
    except UnknownKeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"userId": req.userId, "itemId": req.itemId, "available": rating is not None, "rating": rating}


@app.post("/recommend", response_model=RecommendResponse)
def recommend(req: RecommendRequest) -> dict:
    rec = _recommender()
    try:
        recs = rec.recommend(req.userId, exclude_rated=bool(req.exclude_rated), limit=int(req.k))
    except UnknownKeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {
        "userId": req.userId,
        "k": int(req.k),
        "results": [{"itemId": r.item_id, "score": r.score} for r in recs],
    }


@app.post("/neighbors", response_model=NeighborsResponse)
def neighbors(req: NeighborsRequest) -> dict:
    """Most similar users (user-based) or items (item-based) to `id`."""
    rec = _recommender()
    try:
        sims = rec.neighbors(req.id, top_n=int(req.top_n))
    except UnknownKeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {
        "id": req.id,
        "orientation": rec.orientation,
        "results": [{"id": s.id, "similarity": s.similarity} for s in sims],
    }


@app.post("/users", response_model=MutationResponse)
def add_user(req: AddUserRequest) -> dict:
    return {"added": _recommender().add_user(req.userId)}


@app.post("/items", response_model=MutationResponse)
def add_item(req: AddItemRequest) -> dict:
    return {"added": _recommender().add_item(req.itemId)}


@app.post("/ratings", response_model=MutationResponse)
def add_rating(req: AddRatingRequest) -> dict:
    """Store a rating; both the user and the item must already exist."""
    added = _recommender().add_rating(req.userId, req.itemId, float(req.rating))
    if not added:
        raise HTTPException(status_code=409, detail=f"Unknown user or item: ({req.userId!r}, {req.itemId!r})")
    return {"added": True}
