"""Immutable user x item rating snapshot with id <-> index maps."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Hashable, Sequence

import numpy as np
import pandas as pd

from .errors import NotFoundError


logger = logging.getLogger(__name__)


def _is_unrated(value: object) -> bool:
    if value is None:
        return True
    try:
        v = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Rating is not numeric: {value!r}") from exc
    return math.isnan(v) or v == 0.0


@dataclass(frozen=True, eq=False)
class RatingStore:
    """Read-only rating matrix (rows = users, columns = items).

    Unrated cells hold 0.0 in `values` and False in `rated`. Both arrays are
    flagged read-only so the store can be shared across worker threads.
    """

    values: np.ndarray
    rated: np.ndarray
    means: np.ndarray
    counts: np.ndarray
    user_ids: tuple[Hashable, ...]
    item_ids: tuple[Hashable, ...]
    item_names: tuple[str | None, ...]
    user_to_idx: dict[Hashable, int] = field(repr=False)
    item_to_idx: dict[Hashable, int] = field(repr=False)

    @classmethod
    def from_matrix(
        cls,
        matrix: Sequence[Sequence[float | None]] | np.ndarray,
        *,
        user_ids: Sequence[Hashable] | None = None,
        item_ids: Sequence[Hashable] | None = None,
        item_names: Sequence[str | None] | None = None,
    ) -> "RatingStore":
        """Validate a dense matrix and build the store.

        Default ids are ordinal: users 0..n-1, items 1..m.
        """
        rows = [list(r) for r in matrix]
        n_users = len(rows)
        if n_users:
            n_items = len(rows[0])
            ragged = [i for i, r in enumerate(rows) if len(r) != n_items]
            if ragged:
                raise ValueError(f"Rating matrix rows have inconsistent lengths (first bad row: {ragged[0]})")
        else:
            n_items = len(item_ids) if item_ids is not None else 0

        values = np.zeros((n_users, n_items), dtype=np.float64)
        rated = np.zeros((n_users, n_items), dtype=bool)
        for u, row in enumerate(rows):
            for i, cell in enumerate(row):
                if _is_unrated(cell):
                    continue
                v = float(cell)  # type: ignore[arg-type]
                if v < 0.0:
                    raise ValueError(f"Negative rating {v} at user row {u}, item column {i}")
                values[u, i] = v
                rated[u, i] = True

        users = tuple(range(n_users)) if user_ids is None else tuple(user_ids)
        items = tuple(range(1, n_items + 1)) if item_ids is None else tuple(item_ids)
        if len(users) != n_users:
            raise ValueError(f"user_ids length mismatch: {len(users)} vs {n_users} rows")
        if len(items) != n_items:
            raise ValueError(f"item_ids length mismatch: {len(items)} vs {n_items} columns")

        names = (None,) * n_items if item_names is None else tuple(item_names)
        if len(names) != n_items:
            raise ValueError(f"item_names length mismatch: {len(names)} vs {n_items} columns")

        user_to_idx = {uid: idx for idx, uid in enumerate(users)}
        item_to_idx = {iid: idx for idx, iid in enumerate(items)}
        if len(user_to_idx) != n_users:
            raise ValueError("user_ids contain duplicates")
        if len(item_to_idx) != n_items:
            raise ValueError("item_ids contain duplicates")

        counts = rated.sum(axis=1).astype(np.int64)
        sums = values.sum(axis=1)
        # A user with no ratings has mean 0.
        means = np.divide(sums, counts, out=np.zeros(n_users, dtype=np.float64), where=counts > 0)

        for arr in (values, rated, means, counts):
            arr.setflags(write=False)

        logger.info(
            "RatingStore built: users=%d items=%d ratings=%d",
            n_users,
            n_items,
            int(counts.sum()),
        )
        return cls(
            values=values,
            rated=rated,
            means=means,
            counts=counts,
            user_ids=users,
            item_ids=items,
            item_names=names,
            user_to_idx=user_to_idx,
            item_to_idx=item_to_idx,
        )

    @property
    def n_users(self) -> int:
        return int(self.values.shape[0])

    @property
    def n_items(self) -> int:
        return int(self.values.shape[1])

    @property
    def n_ratings(self) -> int:
        return int(self.counts.sum())

    @property
    def is_empty(self) -> bool:
        return self.n_users == 0 or self.n_items == 0

    def check_user(self, user_idx: int) -> int:
        """Validate a row index and return it as an int (IndexError when out of range)."""
        u = int(user_idx)
        if not 0 <= u < self.n_users:
            raise IndexError(f"user index out of range: {u} (n_users={self.n_users})")
        return u

    def check_item(self, item_idx: int) -> int:
        i = int(item_idx)
        if not 0 <= i < self.n_items:
            raise IndexError(f"item index out of range: {i} (n_items={self.n_items})")
        return i

    def rating(self, user_idx: int, item_idx: int) -> float | None:
        """Return the rating, or None when the cell is unrated."""
        u = self.check_user(user_idx)
        i = self.check_item(item_idx)
        if not self.rated[u, i]:
            return None
        return float(self.values[u, i])

    def mean_rating(self, user_idx: int) -> float:
        return float(self.means[self.check_user(user_idx)])

    def has_user(self, user_id: Hashable) -> bool:
        return user_id in self.user_to_idx

    def has_item(self, item_id: Hashable) -> bool:
        return item_id in self.item_to_idx

    def user_index(self, user_id: Hashable) -> int:
        try:
            return self.user_to_idx[user_id]
        except KeyError:
            raise NotFoundError(f"Unknown user id: {user_id!r}") from None

    def item_index(self, item_id: Hashable) -> int:
        try:
            return self.item_to_idx[item_id]
        except KeyError:
            raise NotFoundError(f"Unknown item id: {item_id!r}") from None

    def user_id(self, user_idx: int) -> Hashable:
        return self.user_ids[self.check_user(user_idx)]

    def item_id(self, item_idx: int) -> Hashable:
        return self.item_ids[self.check_item(item_idx)]

    def item_name(self, item_idx: int) -> str | None:
        return self.item_names[self.check_item(item_idx)]

    def rated_items(self, user_idx: int) -> np.ndarray:
        return np.flatnonzero(self.rated[self.check_user(user_idx)])

    def unrated_items(self, user_idx: int) -> np.ndarray:
        return np.flatnonzero(~self.rated[self.check_user(user_idx)])

    def item_raters(self, item_idx: int) -> np.ndarray:
        return np.flatnonzero(self.rated[:, self.check_item(item_idx)])

    def to_frame(self) -> pd.DataFrame:
        """Debug view: users as index, items as columns, unrated cells as NaN."""
        data = np.where(self.rated, self.values, np.nan)
        columns = [
            name if name is not None else iid for iid, name in zip(self.item_ids, self.item_names)
        ]
        df = pd.DataFrame(data, index=list(self.user_ids), columns=columns)
        df.index.name = "userId"
        return df
