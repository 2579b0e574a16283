"""Data-quality checks over a loaded rating snapshot.

These checks describe the matrix the CF core is about to work on. Sparse or
cold data is legal input (the predictor has fallbacks for it), so most
findings are WARN rather than FAIL.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .user_cf.store import RatingStore


@dataclass(frozen=True)
class CheckResult:
    """Single validation check outcome."""

    name: str
    status: str  # "PASS" | "WARN" | "FAIL"
    details: str


def run_rating_checks(
    store: RatingStore,
    *,
    strict: bool = False,
    rating_scale: Tuple[float, float] = (1.0, 5.0),
) -> Tuple[CheckResult, ...]:
    """Run the rating-matrix checks.

    Parameters
    ----------
    store:
        Loaded rating snapshot.
    strict:
        If True, raise ValueError on FAIL checks.
    rating_scale:
        Expected (low, high) range of ratings. Values outside -> WARN.

    Returns
    -------
    tuple[CheckResult, ...]
        All check results.
    """
    checks: List[CheckResult] = []

    def _fail_or_warn(name: str, ok: bool, fail_msg: str, warn: bool = False) -> None:
        if ok:
            checks.append(CheckResult(name=name, status="PASS", details="OK"))
            return
        status = "WARN" if warn else "FAIL"
        checks.append(CheckResult(name=name, status=status, details=fail_msg))
        if strict and status == "FAIL":
            raise ValueError(f"[FAIL] {name}: {fail_msg}")

    # 1) Something to recommend from
    _fail_or_warn(
        "matrix.non_empty",
        ok=not store.is_empty,
        fail_msg=f"rating matrix is empty (users={store.n_users}, items={store.n_items})",
    )

    # 2) Rating scale
    lo, hi = float(rating_scale[0]), float(rating_scale[1])
    observed = store.values[store.rated]
    out_of_range = sorted(set(observed[(observed < lo) | (observed > hi)].tolist()))
    _fail_or_warn(
        "ratings.range",
        ok=(len(out_of_range) == 0),
        fail_msg=f"ratings outside [{lo}, {hi}]: {out_of_range[:10]}",
        warn=True,
    )

    # 3) Users without history get item-average predictions only
    idle_users = [store.user_ids[int(u)] for u in np.flatnonzero(store.counts == 0)]
    _fail_or_warn(
        "users.have_ratings",
        ok=(len(idle_users) == 0),
        fail_msg=f"{len(idle_users)} user(s) with no ratings: {idle_users[:10]}",
        warn=True,
    )

    # 4) Cold items fall back to the neutral rating
    item_counts = store.rated.sum(axis=0)
    cold = [store.item_ids[int(i)] for i in np.flatnonzero(item_counts == 0)]
    _fail_or_warn(
        "items.have_ratings",
        ok=(len(cold) == 0),
        fail_msg=f"{len(cold)} cold item(s) nobody rated: {cold[:10]}",
        warn=True,
    )

    # 5) Density is informational
    cells = store.n_users * store.n_items
    density = (store.n_ratings / cells) if cells else 0.0
    checks.append(
        CheckResult(
            name="matrix.density",
            status="PASS",
            details=f"{store.n_ratings}/{cells} cells rated ({density:.2%})",
        )
    )

    return tuple(checks)
