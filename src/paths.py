from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class ProjectPaths:
    ratings_csv: Path
    layout: str
    movies_csv: Path | None = None

    @classmethod
    def from_config(cls, repo_root: Path, cfg: dict[str, Any]) -> "ProjectPaths":
        """Resolve the `dataset` section of config.yaml against the repo root."""
        dataset = cfg.get("dataset", {}) if isinstance(cfg.get("dataset"), dict) else {}
        movies = dataset.get("movies_csv")
        return cls(
            ratings_csv=resolve_path(repo_root, str(dataset.get("ratings_csv", "data/raw/movie_ratings.csv"))),
            layout=str(dataset.get("layout", "wide")),
            movies_csv=(resolve_path(repo_root, str(movies)) if movies else None),
        )


def resolve_path(repo_root: Path, path: Path | str) -> Path:
    p = Path(path)
    if not p.is_absolute():
        p = repo_root / p
    return p.resolve()


def _find_marker_dir(start: Path) -> Path | None:
    for candidate in (start, *start.parents):
        if (candidate / "config.yaml").is_file() or (candidate / ".git").exists():
            return candidate
    return None


def get_repo_root() -> Path:
    """Return repo root by searching upwards for `config.yaml` or `.git`.

    Starts at the working directory, then at this file's directory.
    """
    cwd = Path.cwd().resolve()
    for start in (cwd, Path(__file__).resolve().parent):
        found = _find_marker_dir(start)
        if found is not None:
            return found
    raise FileNotFoundError("Could not locate repo root (expected `config.yaml` or `.git`).")
