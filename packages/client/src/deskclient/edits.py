# This project was developed with assistance from AI tools.
"""Pending/confirmed state for individually edited fields.

An edit is shown as pending while its write is in flight, becomes the
confirmed value once the backend accepts it, and rolls back to the last
confirmed value when the write fails.
"""

import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any, Literal

from .errors import ApiError

logger = logging.getLogger(__name__)

EditState = Literal["confirmed", "pending", "failed"]


@dataclass
class FieldEdit:
    confirmed: Any
    pending: Any = None
    state: EditState = "confirmed"
    error: str | None = None

    @property
    def displayed(self) -> Any:
        return self.pending if self.state == "pending" else self.confirmed


class FieldEditTracker:
    def __init__(self, values: dict[Hashable, Any] | None = None):
        self._fields: dict[Hashable, FieldEdit] = {}
        if values:
            self.load(values)

    def load(self, values: dict[Hashable, Any]) -> None:
        """Replace confirmed values with authoritative ones. In-flight edits are kept."""
        for key, value in values.items():
            edit = self._fields.get(key)
            if edit is not None and edit.state == "pending":
                edit.confirmed = value
            else:
                self._fields[key] = FieldEdit(confirmed=value)

    def get(self, key: Hashable) -> FieldEdit | None:
        return self._fields.get(key)

    def displayed(self, key: Hashable) -> Any:
        edit = self._fields.get(key)
        return edit.displayed if edit else None

    def is_pending(self, key: Hashable) -> bool:
        edit = self._fields.get(key)
        return edit is not None and edit.state == "pending"

    def begin(self, key: Hashable, value: Any) -> bool:
        """Mark ``key`` pending with ``value``; False if an edit is already in flight."""
        edit = self._fields.setdefault(key, FieldEdit(confirmed=None))
        if edit.state == "pending":
            return False
        edit.pending = value
        edit.state = "pending"
        edit.error = None
        return True

    def confirm(self, key: Hashable, value: Any = None) -> None:
        edit = self._fields[key]
        edit.confirmed = edit.pending if value is None else value
        edit.pending = None
        edit.state = "confirmed"

    def rollback(self, key: Hashable, error: str | None = None) -> None:
        edit = self._fields[key]
        edit.pending = None
        edit.state = "failed"
        edit.error = error

    async def submit(
        self, key: Hashable, value: Any, send: Callable[[Any], Awaitable[Any]]
    ) -> bool:
        """Run ``send(value)`` with pending/confirm/rollback bookkeeping.

        Returns False when the write was rejected or another edit of the same
        field was still in flight. The ``ApiError`` is re-raised so the caller
        can notify.
        """
        if not self.begin(key, value):
            logger.debug("Edit of %s ignored, previous write still pending", key)
            return False
        try:
            await send(value)
        except ApiError as exc:
            self.rollback(key, exc.message)
            raise
        self.confirm(key)
        return True
