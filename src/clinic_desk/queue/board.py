"""Per-session queue board state.

The board holds what a desk terminal is looking at: whether calling is
paused, which status is filtered, and which entries have been hidden
ahead of the server confirming their removal. It lives in the Django
session, never on the shared queue rows.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, TypeVar

from . import graph
from .services import cancel_entry

logger = logging.getLogger(__name__)

SESSION_KEY = "clinic_desk.queue_board"

T = TypeVar("T")


def optimistic_mutation(
    apply: Callable[[], None],
    confirm: Callable[[], T],
    revert: Callable[[], None],
) -> T:
    """
    Apply a local change, then confirm it with the server-side operation.

    If confirm raises, revert runs and the exception propagates.

    Usage:
        optimistic_mutation(
            apply=lambda: hidden.add(entry_id),
            confirm=lambda: cancel_entry(entry),
            revert=lambda: hidden.discard(entry_id),
        )
    """
    apply()
    try:
        return confirm()
    except Exception:
        revert()
        logger.warning("Optimistic update rolled back", exc_info=True)
        raise


@dataclass
class QueueBoard:
    paused: bool = False
    status_filter: Optional[str] = None
    hidden_entry_ids: set[str] = field(default_factory=set)

    @classmethod
    def from_session(cls, session) -> "QueueBoard":
        data = session.get(SESSION_KEY) or {}
        return cls(
            paused=data.get("paused", False),
            status_filter=data.get("status_filter"),
            hidden_entry_ids=set(data.get("hidden_entry_ids", [])),
        )

    def save(self, session) -> None:
        session[SESSION_KEY] = self.as_dict()

    def as_dict(self) -> dict:
        return {
            "paused": self.paused,
            "status_filter": self.status_filter,
            "hidden_entry_ids": sorted(self.hidden_entry_ids),
        }

    def toggle_pause(self) -> bool:
        self.paused = not self.paused
        return self.paused

    def set_filter(self, status: Optional[str]) -> None:
        if status is not None and status not in graph.QUEUE_STATUSES:
            raise ValueError(f"Unknown queue status '{status}'")
        self.status_filter = status

    def visible(self, entries) -> list:
        """Entries not hidden and matching the status filter."""
        return [
            entry for entry in entries
            if str(entry.pk) not in self.hidden_entry_ids
            and (self.status_filter is None or entry.status == self.status_filter)
        ]

    def prune(self, entries) -> bool:
        """Forget hidden ids that are no longer in `entries`; True if any were dropped."""
        current = {str(entry.pk) for entry in entries}
        stale = self.hidden_entry_ids - current
        self.hidden_entry_ids -= stale
        return bool(stale)

    def remove_entry(self, entry, *, by_user=None, reason: str = ""):
        """Hide the entry, then cancel it; unhide if cancelling fails."""
        entry_id = str(entry.pk)
        return optimistic_mutation(
            apply=lambda: self.hidden_entry_ids.add(entry_id),
            confirm=lambda: cancel_entry(entry, by_user=by_user, reason=reason),
            revert=lambda: self.hidden_entry_ids.discard(entry_id),
        )
