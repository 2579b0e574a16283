from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Hashable, List, Optional, Tuple

import pandas as pd

from .user_cf.errors import EmptyInputError
from .user_cf.store import RatingStore


logger = logging.getLogger(__name__)

LAYOUTS: Tuple[str, ...] = ("wide", "long")

REQUIRED_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "ratings": ("userId", "movieId", "rating"),
    "movies": ("movieId", "title"),
}


def normalize_id(value: Hashable) -> Hashable:
    """Integer-looking ids become ints; everything else stays a stripped string."""
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return text
    try:
        as_int = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return value
    return as_int if as_int == value else value


def _item_ids_and_names(labels: List[str]) -> Tuple[List[Hashable], List[Optional[str]]]:
    """Numeric header labels are item ids; otherwise items are numbered 1..m and labels are names."""
    try:
        return [int(str(label).strip()) for label in labels], [None] * len(labels)
    except ValueError:
        return list(range(1, len(labels) + 1)), [str(label).strip() for label in labels]


def read_wide_ratings(path: Path) -> pd.DataFrame:
    """Read the matrix file: header of item labels, then `userId, r_1, ..., r_m` rows.

    The first header cell is a placeholder. `0` or an empty field means unrated.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Ratings file not found: {path}")
    try:
        df = pd.read_csv(path, header=0, index_col=0, skipinitialspace=True)
    except pd.errors.EmptyDataError as exc:
        raise EmptyInputError(f"Ratings file has no header row: {path}") from exc

    try:
        if not df.empty:
            df = df.apply(pd.to_numeric)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{path.name} contains non-numeric ratings: {exc}") from exc

    if df.index.has_duplicates:
        raise ValueError(f"{path.name} has duplicate user ids")
    return df


def read_long_ratings(path: Path) -> pd.DataFrame:
    """Read MovieLens-style `userId,movieId,rating[,timestamp]` rows and pivot to a matrix."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Ratings file not found: {path}")
    try:
        ratings = pd.read_csv(path)
    except pd.errors.EmptyDataError as exc:
        raise EmptyInputError(f"Ratings file has no header row: {path}") from exc

    missing = [c for c in REQUIRED_COLUMNS["ratings"] if c not in ratings.columns]
    if missing:
        raise ValueError(f"{path.name} missing columns: {missing}")

    ratings = ratings.dropna(subset=["userId", "movieId", "rating"])
    try:
        ratings = ratings.astype({"userId": "int64", "movieId": "int64", "rating": "float64"})
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{path.name} has non-integer ids or non-numeric ratings: {exc}") from exc
    if ratings.duplicated(subset=["userId", "movieId"]).any():
        raise ValueError(f"{path.name} contains duplicate (userId, movieId) rows")
    if (ratings["rating"] < 0).any():
        raise ValueError(f"{path.name} contains negative ratings")

    wide = ratings.pivot(index="userId", columns="movieId", values="rating")
    return wide.sort_index(axis=0).sort_index(axis=1)


def load_titles(path: Path) -> Dict[int, str]:
    """movieId -> title from a `movies.csv` style file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Movies file not found: {path}")
    movies = pd.read_csv(path, dtype={"movieId": "int64", "title": "string"})
    missing = [c for c in REQUIRED_COLUMNS["movies"] if c not in movies.columns]
    if missing:
        raise ValueError(f"{path.name} missing columns: {missing}")
    if movies["movieId"].duplicated().any():
        raise ValueError(f"{path.name} has duplicate movieId values")
    return {int(mid): str(title) for mid, title in zip(movies["movieId"], movies["title"].fillna(""))}


def store_from_frame(df: pd.DataFrame, *, titles: Optional[Dict[int, str]] = None) -> RatingStore:
    """Build a RatingStore from a users x items frame (NaN/0 = unrated)."""
    user_ids = [normalize_id(u) for u in df.index.tolist()]
    labels = [str(c) for c in df.columns.tolist()]
    item_ids, item_names = _item_ids_and_names(labels)

    if titles:
        item_names = [
            titles.get(int(iid), name) if isinstance(iid, int) else name
            for iid, name in zip(item_ids, item_names)
        ]

    matrix = df.to_numpy(dtype="float64", na_value=0.0) if len(df.columns) else [[] for _ in user_ids]
    return RatingStore.from_matrix(matrix, user_ids=user_ids, item_ids=item_ids, item_names=item_names)


def load_rating_store(
    path: Path,
    *,
    layout: str = "wide",
    movies_path: Optional[Path] = None,
) -> RatingStore:
    """Load a ratings file into an immutable RatingStore."""
    if layout not in LAYOUTS:
        raise ValueError(f"layout must be one of {LAYOUTS}, got {layout!r}")

    df = read_wide_ratings(path) if layout == "wide" else read_long_ratings(path)
    titles = load_titles(movies_path) if movies_path is not None else None
    logger.info("Loaded %s ratings file %s: users=%d items=%d", layout, path, len(df.index), len(df.columns))
    return store_from_frame(df, titles=titles)
