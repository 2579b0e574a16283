from __future__ import annotations

import logging

import numpy as np

from .config import UserCFConfig
from .similarity import SimilarityEngine
from .store import RatingStore


logger = logging.getLogger(__name__)


class Predictor:
    """Similarity-weighted rating estimate with a two-tier fallback.

    Only neighbors with strictly positive similarity who rated the item
    contribute:

        pred = sum(sim_v * r_v,i) / sum(|sim_v|)

    When no such neighbor exists the item's average rating (over the other
    users) is returned, and `neutral_rating` when nobody else rated the item.
    """

    def __init__(
        self,
        store: RatingStore,
        engine: SimilarityEngine,
        config: UserCFConfig | None = None,
    ) -> None:
        self.store = store
        self.engine = engine
        self.config = config or engine.config
        self.neutral_rating = float(self.config.neutral_rating)

    def _estimate(self, user_idx: int, item_idx: int, sims: np.ndarray) -> float:
        raters = self.store.rated[:, item_idx].copy()
        raters[user_idx] = False
        if not raters.any():
            return self.neutral_rating

        item_ratings = self.store.values[:, item_idx]
        use = raters & (sims > 0.0)
        if use.any():
            w = sims[use]
            denom = float(np.abs(w).sum())
            if denom > 0.0:
                return float(np.dot(w, item_ratings[use]) / denom)

        return float(item_ratings[raters].mean())

    def predict(self, user_idx: int, item_idx: int) -> float:
        """Estimate a rating; a cell the user already rated returns that rating."""
        u = self.store.check_user(user_idx)
        i = self.store.check_item(item_idx)
        known = self.store.rating(u, i)
        if known is not None:
            return known
        return self._estimate(u, i, self.engine.row(u))

    def predict_unrated(self, user_idx: int, item_idx: int) -> float:
        """Estimate from neighbors only, even when the cell is rated (in-sample)."""
        u = self.store.check_user(user_idx)
        i = self.store.check_item(item_idx)
        return self._estimate(u, i, self.engine.row(u))

    def predict_hidden(self, user_idx: int, item_idx: int) -> float:
        """Estimate the cell as if the user had never rated it (leave-one-out).

        Without a rating in that cell the user's similarities are those of
        `SimilarityEngine.row` and no recomputation is needed.
        """
        u = self.store.check_user(user_idx)
        i = self.store.check_item(item_idx)
        if not self.store.rated[u, i]:
            return self._estimate(u, i, self.engine.row(u))
        return self._estimate(u, i, self.engine.row_without(u, i))

    def predict_many(self, user_idx: int, item_idxs: np.ndarray | list[int]) -> np.ndarray:
        """`predict` over several items of one user, sharing one similarity row."""
        u = self.store.check_user(user_idx)
        sims = self.engine.row(u)
        out = np.empty(len(item_idxs), dtype=np.float64)
        for k, item_idx in enumerate(item_idxs):
            i = self.store.check_item(item_idx)
            known = self.store.rating(u, i)
            out[k] = known if known is not None else self._estimate(u, i, sims)
        return out
