from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


RMSE_MODES = ("leave_one_out", "in_sample")


@dataclass(frozen=True)
class UserCFConfig:
    """Knobs for similarity, prediction and evaluation.

    `neutral_rating` is returned for items nobody rated (midpoint of a 1..5 scale).
    `min_co_rated` is the number of co-rated items a pair needs before its Pearson
    correlation is considered; below it the similarity is 0.
    """

    neutral_rating: float = 3.0
    min_co_rated: int = 2
    cache_similarities: bool = True
    precompute: bool = False
    workers: int = 4
    rmse_mode: str = "leave_one_out"
    rating_scale: tuple[float, float] = (1.0, 5.0)

    def __post_init__(self) -> None:
        if int(self.min_co_rated) < 1:
            raise ValueError(f"min_co_rated must be >= 1, got {self.min_co_rated}")
        if int(self.workers) < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.rmse_mode not in RMSE_MODES:
            raise ValueError(f"rmse_mode must be one of {RMSE_MODES}, got {self.rmse_mode!r}")
        lo, hi = self.rating_scale
        if not float(lo) < float(hi):
            raise ValueError(f"rating_scale must be (low, high) with low < high, got {self.rating_scale}")

    @classmethod
    def from_mapping(cls, cfg: dict[str, Any] | None) -> "UserCFConfig":
        """Build from the parsed YAML document (reads its `user_cf` section)."""
        if cfg is None:
            return cls()
        if not isinstance(cfg, dict):
            raise ValueError(f"Expected a YAML mapping, got {type(cfg)}")

        raw = cfg.get("user_cf", {}) if isinstance(cfg.get("user_cf"), dict) else {}
        defaults = cls()
        scale = raw.get("rating_scale", defaults.rating_scale)
        if not isinstance(scale, (list, tuple)) or len(scale) != 2:
            raise ValueError(f"rating_scale must be a [low, high] pair, got {scale!r}")

        return cls(
            neutral_rating=float(raw.get("neutral_rating", defaults.neutral_rating)),
            min_co_rated=int(raw.get("min_co_rated", defaults.min_co_rated)),
            cache_similarities=bool(raw.get("cache_similarities", defaults.cache_similarities)),
            precompute=bool(raw.get("precompute", defaults.precompute)),
            workers=int(raw.get("workers", defaults.workers)),
            rmse_mode=str(raw.get("rmse_mode", defaults.rmse_mode)),
            rating_scale=(float(scale[0]), float(scale[1])),
        )


def load_yaml(path: Path) -> dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    obj = yaml.safe_load(path.read_text())
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ValueError(f"Expected YAML mapping at {path}, got {type(obj)}")
    return obj


def load_config(path: Path) -> UserCFConfig:
    return UserCFConfig.from_mapping(load_yaml(path))
