from __future__ import annotations

import pytest

from src.eda import run_rating_checks
from src.user_cf.store import RatingStore


def _status(results, name: str) -> str:
    return next(r.status for r in results if r.name == name)


def test_clean_matrix_passes() -> None:
    store = RatingStore.from_matrix([[5, 3], [4, 1]])
    results = run_rating_checks(store)
    assert all(r.status == "PASS" for r in results)
    assert "4/4" in next(r.details for r in results if r.name == "matrix.density")


def test_sparse_matrix_warns() -> None:
    store = RatingStore.from_matrix([[5, 0, 0], [0, 0, 0], [7, 0, 2]], user_ids=["a", "b", "c"])
    results = run_rating_checks(store, strict=True)
    assert _status(results, "users.have_ratings") == "WARN"
    assert _status(results, "items.have_ratings") == "WARN"
    assert _status(results, "ratings.range") == "WARN"
    assert "'b'" in next(r.details for r in results if r.name == "users.have_ratings")


def test_empty_matrix_fails() -> None:
    store = RatingStore.from_matrix([])
    results = run_rating_checks(store)
    assert _status(results, "matrix.non_empty") == "FAIL"
    with pytest.raises(ValueError, match="matrix.non_empty"):
        run_rating_checks(store, strict=True)
