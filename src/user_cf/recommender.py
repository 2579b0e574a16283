from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Hashable, Sequence

import numpy as np

from ..data import load_rating_store
from .config import UserCFConfig
from .evaluate import Evaluator, RMSEReport
from .predictor import Predictor
from .similarity import SimilarityEngine
from .store import RatingStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimilarUser:
    userId: Hashable
    similarity: float
    common_rated: int


@dataclass(frozen=True)
class RecommendedItem:
    itemId: Hashable
    score: float
    title: str | None = None


class Recommender:
    """Top-N selection over the items a user has not rated."""

    def __init__(self, store: RatingStore, predictor: Predictor) -> None:
        self.store = store
        self.predictor = predictor

    def top_n(self, user_idx: int, n: int) -> list[tuple[int, float]]:
        """Return up to `n` (item_idx, score) pairs, best first.

        Ties are broken by ascending item column index. Fewer than `n` entries
        come back when the user has fewer unrated items.
        """
        if int(n) < 0:
            raise ValueError("n must be >= 0")
        if self.store.is_empty or int(n) == 0:
            return []

        candidates = self.store.unrated_items(user_idx)
        if candidates.size == 0:
            return []

        scores = self.predictor.predict_many(user_idx, candidates)
        order = np.lexsort((candidates, -scores))[: int(n)]
        return [(int(candidates[k]), float(scores[k])) for k in order.tolist()]


class UserUserCFRecommender:
    """Request/response facade over the CF core.

    Built once from a rating snapshot and reused across requests; callers speak
    external user/item ids, the core speaks row/column indices.
    """

    def __init__(self, store: RatingStore, config: UserCFConfig | None = None) -> None:
        self.store = store
        self.config = config or UserCFConfig()
        self.engine = SimilarityEngine(store, self.config)
        self.predictor = Predictor(store, self.engine, self.config)
        self.recommender = Recommender(store, self.predictor)
        self.evaluator = Evaluator(store, self.predictor)

        logger.info(
            "UserCF ready: users=%d items=%d ratings=%d min_co_rated=%d cache=%s precomputed=%s",
            store.n_users,
            store.n_items,
            store.n_ratings,
            self.config.min_co_rated,
            self.config.cache_similarities,
            self.engine.has_table,
        )

    @classmethod
    def load(
        cls,
        matrix: Sequence[Sequence[float | None]] | np.ndarray,
        *,
        user_ids: Sequence[Hashable] | None = None,
        item_ids: Sequence[Hashable] | None = None,
        item_names: Sequence[str | None] | None = None,
        config: UserCFConfig | None = None,
    ) -> "UserUserCFRecommender":
        store = RatingStore.from_matrix(matrix, user_ids=user_ids, item_ids=item_ids, item_names=item_names)
        return cls(store, config)

    @classmethod
    def from_csv(
        cls,
        path: Path,
        *,
        config: UserCFConfig | None = None,
        layout: str = "wide",
        movies_path: Path | None = None,
    ) -> "UserUserCFRecommender":
        store = load_rating_store(Path(path), layout=layout, movies_path=movies_path)
        return cls(store, config)

    def has_user(self, user_id: Hashable) -> bool:
        return self.store.has_user(user_id)

    def recommend(self, user_id: Hashable, n: int = 10) -> list[RecommendedItem]:
        if self.store.is_empty:
            return []
        uidx = self.store.user_index(user_id)
        ranked = self.recommender.top_n(uidx, int(n))
        return [
            RecommendedItem(
                itemId=self.store.item_id(i),
                score=score,
                title=self.store.item_name(i),
            )
            for i, score in ranked
        ]

    def predict(self, user_id: Hashable, item_id: Hashable) -> float:
        uidx = self.store.user_index(user_id)
        iidx = self.store.item_index(item_id)
        return self.predictor.predict(uidx, iidx)

    def similarity(self, user_a: Hashable, user_b: Hashable) -> float:
        return self.engine.similarity(self.store.user_index(user_a), self.store.user_index(user_b))

    def similar_users(self, user_id: Hashable, *, top_n: int = 10) -> list[SimilarUser]:
        if self.store.is_empty:
            return []
        uidx = self.store.user_index(user_id)
        return [
            SimilarUser(
                userId=self.store.user_id(nb.user_idx),
                similarity=nb.similarity,
                common_rated=nb.common_rated,
            )
            for nb in self.engine.similar_users(uidx, top_n=int(top_n))
        ]

    def rmse(self, mode: str | None = None) -> float:
        return self.rmse_report(mode).rmse

    def rmse_report(self, mode: str | None = None) -> RMSEReport:
        return self.evaluator.report(mode or self.config.rmse_mode)
