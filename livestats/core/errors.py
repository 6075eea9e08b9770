# livestats/core/errors.py


class LiveStatsError(Exception):
    """Base class for errors raised at the remote-data boundary."""


class RemoteError(LiveStatsError):
    """The stats API could not be reached, or returned something unusable."""


class LivenessUnknown(LiveStatsError):
    """The room liveness check failed; callers treat the room as offline."""


class EmptySession(LiveStatsError):
    """A live session exists but has no countable events yet."""

    def __init__(self, live_id: str):
        super().__init__(f"Session {live_id} has no events yet.")
        self.live_id = live_id
