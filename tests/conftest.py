from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure `import src...` works when pytest uses importlib import mode.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from src.user_cf.store import RatingStore  # noqa: E402


# U0=[5,3,_], U1=[4,_,2], U2=[_,2,5]
SMALL_MATRIX = [
    [5, 3, 0],
    [4, 0, 2],
    [0, 2, 5],
]


@pytest.fixture()
def small_store() -> RatingStore:
    return RatingStore.from_matrix(SMALL_MATRIX)


@pytest.fixture()
def random_matrix() -> np.ndarray:
    rng = np.random.default_rng(7)
    # 0 = unrated, 1..5 = rating
    return rng.integers(0, 6, size=(12, 9)).astype(float)


@pytest.fixture()
def wide_csv(tmp_path: Path) -> Path:
    path = tmp_path / "movie_ratings.csv"
    path.write_text(
        "userId,101,102,103,104\n"
        "1,5,3,0,1\n"
        "2,4,0,,1\n"
        "3,1,1,0,5\n"
        "4,0,1,5,4\n"
    )
    return path
