"""FastAPI service entrypoint for the user-user CF recommender."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query

from ..data import normalize_id
from ..paths import ProjectPaths, get_repo_root, resolve_path
from ..user_cf.config import RMSE_MODES, UserCFConfig, load_yaml
from ..user_cf.recommender import UserUserCFRecommender
from ..utils import setup_logging
from .schemas import (
    HealthResponse,
    PredictRequest,
    PredictResponse,
    RecommendRequest,
    RecommendResponse,
    RMSEResponse,
    SimilarUsersRequest,
    SimilarUsersResponse,
)

logger = logging.getLogger(__name__)


def _get_env_path(name: str, default: Path | None) -> Path | None:
    raw = os.getenv(name)
    if raw is None or str(raw).strip() == "":
        return default
    return resolve_path(get_repo_root(), str(raw))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    repo_root = get_repo_root()
    config_path = _get_env_path("CONFIG_PATH", repo_root / "config.yaml")
    cfg_yaml = load_yaml(config_path) if config_path is not None and config_path.exists() else {}
    paths = ProjectPaths.from_config(repo_root, cfg_yaml)
    ratings_path = _get_env_path("RATINGS_PATH", paths.ratings_csv)
    movies_path = _get_env_path("MOVIES_PATH", paths.movies_csv)

    logger.info("Starting service with config=%s ratings=%s layout=%s", config_path, ratings_path, paths.layout)
    app.state.user_cf = UserUserCFRecommender.from_csv(
        ratings_path,
        config=UserCFConfig.from_mapping(cfg_yaml),
        layout=paths.layout,
        movies_path=movies_path,
    )
    yield


app = FastAPI(title="User-User CF Recommendation Service", lifespan=lifespan)


def _user_cf(app_: FastAPI) -> UserUserCFRecommender:
    rec = getattr(app_.state, "user_cf", None)
    if rec is None:
        raise HTTPException(status_code=503, detail="UserCF recommender not initialized")
    return rec


@app.get("/health", response_model=HealthResponse)
def health() -> dict:
    rec = _user_cf(app)
    return {
        "status": "ok",
        "users": rec.store.n_users,
        "items": rec.store.n_items,
        "ratings": rec.store.n_ratings,
    }


@app.post("/user_cf/recommend", response_model=RecommendResponse)
def user_cf_recommend(req: RecommendRequest) -> dict:
    """Top-N unrated items for a user, best predicted first."""
    rec = _user_cf(app)
    try:
        recs = rec.recommend(normalize_id(req.userId), int(req.n))
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "userId": req.userId,
        "requested": int(req.n),
        "available": len(recs),
        "results": [r.__dict__ for r in recs],
    }


@app.post("/user_cf/predict", response_model=PredictResponse)
def user_cf_predict(req: PredictRequest) -> dict:
    """Predicted rating for one (user, item) pair."""
    rec = _user_cf(app)
    try:
        score = rec.predict(normalize_id(req.userId), normalize_id(req.itemId))
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return {"userId": req.userId, "itemId": req.itemId, "score": float(score)}


@app.post("/user_cf/similar_users", response_model=SimilarUsersResponse)
def user_cf_similar_users(req: SimilarUsersRequest) -> dict:
    """Users with the most similar rating patterns (Pearson over co-rated items)."""
    rec = _user_cf(app)
    try:
        sims = rec.similar_users(normalize_id(req.userId), top_n=int(req.top_n))
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return {
        "userId": req.userId,
        "top_n": int(req.top_n),
        "results": [s.__dict__ for s in sims],
    }


@app.get("/user_cf/rmse", response_model=RMSEResponse)
def user_cf_rmse(mode: str | None = Query(None, description=f"One of {list(RMSE_MODES)}")) -> dict:
    """RMSE of the predictor over every known rating."""
    rec = _user_cf(app)
    try:
        report = rec.rmse_report(mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"mode": report.mode, "rmse": report.rmse, "count": report.count}
