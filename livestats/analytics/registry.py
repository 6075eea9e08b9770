# livestats/analytics/registry.py
import logging
from collections.abc import Iterable

from livestats.core.models import Session

log = logging.getLogger(__name__)


class ViewerRegistry:
    """
    Tracks which users have already been seen, for new-viewer classification.

    `historical` holds everyone active in the lookback sessions.
    `session` holds everyone seen so far in the current aggregation pass;
    each pass replays the whole live session, so it starts empty every time.
    """

    def __init__(self):
        self.historical: set[int] = set()
        self.session: set[int] = set()

    def reset(self) -> None:
        """Forget everything; called when a new live session is detected."""
        self.historical.clear()
        self.session.clear()

    def begin_pass(self) -> None:
        self.session.clear()

    def record_historical(self, sessions: Iterable[Session]) -> None:
        before = len(self.historical)
        for session in sessions:
            self.historical.update(e.user_id for e in session.events if e.is_counted)
        log.debug("Historical viewer registry grew %d -> %d.", before, len(self.historical))

    def is_known(self, user_id: int) -> bool:
        return user_id in self.session or user_id in self.historical

    def mark_seen(self, user_id: int) -> bool:
        """Records user_id for this pass. Returns True if they were new."""
        is_new = not self.is_known(user_id)
        self.session.add(user_id)
        return is_new
