"""Offline prediction-quality assessment (RMSE over the known ratings)."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np
from sklearn.metrics import mean_squared_error

from .config import RMSE_MODES
from .predictor import Predictor
from .store import RatingStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RMSEReport:
    rmse: float
    count: int
    mode: str


class Evaluator:
    """RMSE of the predictor against every rated cell.

    Modes:
    - "leave_one_out": each rating is hidden before it is predicted (the user's
      mean and similarities are recomputed without it).
    - "in_sample": each rated cell gets the neighbor estimate (the stored value
      itself is never returned), but the rating still counts towards the
      user's mean and similarities. Optimistic compared to leave-one-out.
    """

    def __init__(self, store: RatingStore, predictor: Predictor) -> None:
        self.store = store
        self.predictor = predictor

    def report(self, mode: str = "leave_one_out") -> RMSEReport:
        if mode not in RMSE_MODES:
            raise ValueError(f"mode must be one of {RMSE_MODES}, got {mode!r}")

        users, items = np.nonzero(self.store.rated)
        if users.size == 0:
            logger.warning("RMSE undefined: no rated cells in the store; returning 0.0")
            return RMSEReport(rmse=0.0, count=0, mode=mode)

        predict = self.predictor.predict_hidden if mode == "leave_one_out" else self.predictor.predict_unrated
        t0 = time.perf_counter()
        actual = self.store.values[users, items]
        predicted = np.array([predict(int(u), int(i)) for u, i in zip(users, items)], dtype=np.float64)
        rmse = float(np.sqrt(mean_squared_error(actual, predicted)))

        logger.info(
            "RMSE mode=%s ratings=%d rmse=%.4f elapsed=%.3fs",
            mode,
            int(users.size),
            rmse,
            time.perf_counter() - t0,
        )
        return RMSEReport(rmse=rmse, count=int(users.size), mode=mode)

    def rmse(self, mode: str = "leave_one_out") -> float:
        return self.report(mode).rmse
