"""Exceptions raised by the user-user CF core."""

from __future__ import annotations


class NotFoundError(KeyError):
    """Unknown external user/item identifier."""

    def __str__(self) -> str:
        # KeyError quotes its message; keep it readable in logs and HTTP details.
        return str(self.args[0]) if self.args else ""


class EmptyInputError(ValueError):
    """Input carries no rating structure at all (no header, no columns)."""
