"""Pearson user-user similarity over co-rated items.

Ratings are centered with each user's global mean (over all of that user's
ratings), then correlated over the items both users rated:

    sim(a, b) = sum(d_a * d_b) / sqrt(sum(d_a^2) * sum(d_b^2))

A pair with fewer than `min_co_rated` co-rated items, or with zero variance on
either side, has similarity 0.
"""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np

from .config import UserCFConfig
from .store import RatingStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Neighbor:
    user_idx: int
    similarity: float
    common_rated: int


def _pearson(
    num: np.ndarray,
    ss_a: np.ndarray,
    ss_b: np.ndarray,
    common: np.ndarray,
    *,
    min_co_rated: int,
) -> np.ndarray:
    denom = np.sqrt(ss_a * ss_b)
    ok = (common >= min_co_rated) & (denom > 0.0)
    sims = np.zeros(np.shape(num), dtype=np.float64)
    np.divide(num, denom, out=sims, where=ok)
    np.clip(sims, -1.0, 1.0, out=sims)
    return sims


class SimilarityEngine:
    """Similarity lookups against a read-only RatingStore.

    Pair values are cached under the unordered pair key. Cache writes go through
    `dict.setdefault`, so concurrent callers computing the same pair agree on the
    first value stored and never observe it changing afterwards.
    """

    def __init__(self, store: RatingStore, config: UserCFConfig | None = None) -> None:
        self.store = store
        self.config = config or UserCFConfig()
        self.min_co_rated = int(self.config.min_co_rated)
        self.use_cache = bool(self.config.cache_similarities)

        rated_f = store.rated.astype(np.float64)
        centered = np.where(store.rated, store.values - store.means[:, None], 0.0)
        squares = centered * centered
        for arr in (rated_f, centered, squares):
            arr.setflags(write=False)
        self._rated_f = rated_f
        self._centered = centered
        self._squares = squares

        self._pairs: dict[tuple[int, int], float] = {}
        self._rows: dict[int, np.ndarray] = {}
        self._table: np.ndarray | None = None

        if self.config.precompute and not store.is_empty:
            self.compute_all()

    @property
    def cache_size(self) -> int:
        return len(self._pairs)

    @property
    def has_table(self) -> bool:
        return self._table is not None

    def similarity(self, user_a: int, user_b: int) -> float:
        """Similarity of two users by row index; symmetric in its arguments.

        Values are read from the lower-indexed user's row, so a pair and the
        predictor's weights come from the same computation.
        """
        a = self.store.check_user(user_a)
        b = self.store.check_user(user_b)
        if self._table is not None:
            return float(self._table[a, b])

        lo, hi = (a, b) if a <= b else (b, a)
        if self.use_cache:
            cached = self._pairs.get((lo, hi))
            if cached is not None:
                return cached
        return float(self.row(lo)[hi])

    def _row_from(self, centered_u: np.ndarray, mask_u: np.ndarray) -> np.ndarray:
        mask_f = mask_u.astype(np.float64)
        num = self._centered @ centered_u
        ss_u = self._rated_f @ (centered_u * centered_u)
        ss_v = self._squares @ mask_f
        common = self._rated_f @ mask_f
        return _pearson(num, ss_u, ss_v, common, min_co_rated=self.min_co_rated)

    def row(self, user_idx: int) -> np.ndarray:
        """Similarity of `user_idx` against every user (its own entry included)."""
        u = self.store.check_user(user_idx)
        if self._table is not None:
            return self._table[u]
        if self.use_cache:
            cached_row = self._rows.get(u)
            if cached_row is not None:
                return cached_row

        logger.debug("Similarity row cache miss: user_idx=%d", u)
        sims = self._row_from(self._centered[u], self.store.rated[u])
        if self.use_cache:
            for v in range(self.store.n_users):
                key = (u, v) if u <= v else (v, u)
                sims[v] = self._pairs.setdefault(key, float(sims[v]))
            sims.setflags(write=False)
            sims = self._rows.setdefault(u, sims)
        return sims

    def row_without(self, user_idx: int, item_idx: int) -> np.ndarray:
        """Similarity row computed as if `user_idx` had not rated `item_idx`.

        The user's mean is recomputed without that rating. Never cached.
        """
        u = self.store.check_user(user_idx)
        i = self.store.check_item(item_idx)
        mask_u = self.store.rated[u].copy()
        mask_u[i] = False
        values_u = self.store.values[u].copy()
        values_u[i] = 0.0
        n_rated = int(mask_u.sum())
        mean_u = float(values_u.sum() / n_rated) if n_rated else 0.0
        centered_u = np.where(mask_u, values_u - mean_u, 0.0)
        sims = self._row_from(centered_u, mask_u)

        # Row u of the stored matrix still holds the rating; redo the self entry.
        ss = float(np.dot(centered_u, centered_u))
        sims[u] = 1.0 if n_rated >= self.min_co_rated and ss > 0.0 else 0.0
        return sims

    def common_counts(self, user_idx: int) -> np.ndarray:
        u = self.store.check_user(user_idx)
        return (self._rated_f @ self._rated_f[u]).astype(np.int64)

    def _compute_block(self, start: int, stop: int, out: np.ndarray) -> None:
        block_c = self._centered[start:stop]
        block_r = self._rated_f[start:stop]
        num = block_c @ self._centered.T
        ss_block = (block_c * block_c) @ self._rated_f.T
        ss_other = block_r @ self._squares.T
        common = block_r @ self._rated_f.T
        out[start:stop] = _pearson(num, ss_block, ss_other, common, min_co_rated=self.min_co_rated)

    def compute_all(self, workers: int | None = None) -> np.ndarray:
        """Bulk mode: full (n_users, n_users) similarity table.

        Row blocks are computed on a thread pool; each block writes only its own
        rows of the output, and the table is then mirrored from its upper triangle.
        """
        if self._table is not None:
            return self._table

        n = self.store.n_users
        if n == 0:
            table = np.zeros((0, 0), dtype=np.float64)
            table.setflags(write=False)
            self._table = table
            return table

        n_workers = max(1, int(workers or self.config.workers))
        block = max(1, math.ceil(n / n_workers))
        bounds = [(s, min(n, s + block)) for s in range(0, n, block)]

        t0 = time.perf_counter()
        out = np.zeros((n, n), dtype=np.float64)
        if len(bounds) == 1:
            self._compute_block(0, n, out)
        else:
            with ThreadPoolExecutor(max_workers=n_workers) as pool:
                futures = [pool.submit(self._compute_block, s, e, out) for s, e in bounds]
                for fut in futures:
                    fut.result()

        upper = np.triu(out, k=1)
        table = upper + upper.T
        np.fill_diagonal(table, np.diag(out))

        # Values already handed out stay stable.
        for (a, b), value in list(self._pairs.items()):
            table[a, b] = value
            table[b, a] = value

        table.setflags(write=False)
        self._table = table
        logger.info(
            "Similarity table computed: users=%d pairs=%d blocks=%d elapsed=%.3fs",
            n,
            n * (n - 1) // 2,
            len(bounds),
            time.perf_counter() - t0,
        )
        return table

    def similar_users(self, user_idx: int, *, top_n: int = 10) -> list[Neighbor]:
        """Most similar other users, ties broken by ascending row index."""
        if int(top_n) < 0:
            raise ValueError("top_n must be >= 0")
        u = self.store.check_user(user_idx)
        if int(top_n) == 0:
            return []

        sims = np.asarray(self.row(u), dtype=np.float64)
        common = self.common_counts(u)
        others = np.array([v for v in range(self.store.n_users) if v != u], dtype=np.int64)
        if others.size == 0:
            return []

        order = others[np.lexsort((others, -sims[others]))][: int(top_n)]
        return [
            Neighbor(user_idx=int(v), similarity=float(sims[v]), common_rated=int(common[v]))
            for v in order.tolist()
        ]
