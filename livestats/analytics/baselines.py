# livestats/analytics/baselines.py
"""Historical "normal level" baselines from a broadcaster's recent sessions."""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from livestats.analytics.registry import ViewerRegistry
from livestats.core.clients.danmaku import DanmakuClient
from livestats.core.constants import BaselineConfig, Defaults, PollIntervals
from livestats.core.errors import RemoteError
from livestats.core.models import Session

log = logging.getLogger(__name__)


@dataclass
class Baselines:
    """Per-metric baselines; None means there's nothing to display."""

    message_rate: float | None = None
    active_viewers: float | None = None
    online: float | None = None
    session_count: int = 0


def message_rate_baseline(sessions: list[Session], bucket_minutes: int) -> float | None:
    """Messages per bucket width, averaged over the sessions' total airtime."""
    finished = [s for s in sessions if not s.is_live]
    total_messages = sum(s.total_message_count for s in finished)
    total_minutes = sum(s.elapsed_minutes for s in finished)
    if total_minutes <= 0:
        return None
    return total_messages / total_minutes * bucket_minutes


def minute_slots(session: Session) -> list[set[int]]:
    """
    Users active in each wall-clock minute, starting at the first event.
    Slots advance in fixed 60s steps, so a silent stretch leaves empty slots.
    """
    events = session.counted_events()
    if not events:
        return []

    slot_start = events[0].timestamp
    slots: list[set[int]] = [set()]
    for event in events:
        while event.timestamp - slot_start > BaselineConfig.SLOT_MS:
            slot_start += BaselineConfig.SLOT_MS
            slots.append(set())
        slots[-1].add(event.user_id)
    return slots


def active_viewer_baseline(sessions: list[Session], bucket_minutes: int) -> float | None:
    """Mean distinct users per bucket-width chunk, over every chunk of every session."""
    chunk_sizes = []
    for session in sessions:
        slots = minute_slots(session)
        for idx in range(0, len(slots), bucket_minutes):
            chunk = set().union(*slots[idx : idx + bucket_minutes])
            chunk_sizes.append(len(chunk))
    if not chunk_sizes:
        return None
    return sum(chunk_sizes) / len(chunk_sizes)


def trimmed_online_mean(samples: dict[int, float]) -> float:
    """
    Mean online count after dropping the lowest 10% of samples.
    Only the low tail is trimmed. NaN when there are no samples.
    """
    values = sorted(samples.values())
    if not values:
        return math.nan
    drop = int(len(values) * BaselineConfig.ONLINE_LOW_TRIM_FRACTION)
    kept = values[drop:]
    return sum(kept) / len(kept)


def online_baseline(sessions: list[Session]) -> float | None:
    means = [trimmed_online_mean(s.online_samples) for s in sessions]
    means = [m for m in means if not math.isnan(m)]
    if not means:
        return None
    return sum(means) / len(means)


def compute_baselines(sessions: list[Session], bucket_minutes: int) -> Baselines:
    return Baselines(
        message_rate=message_rate_baseline(sessions, bucket_minutes),
        active_viewers=active_viewer_baseline(sessions, bucket_minutes),
        online=online_baseline(sessions),
        session_count=len(sessions),
    )


class BaselineCalculator:
    """
    Fetches the lookback sessions and turns them into baselines.

    All sessions are requested at once. Failed ones are logged and refetched
    after a fixed delay until every one succeeds; there is no retry cap.
    """

    def __init__(
        self,
        source: DanmakuClient,
        bucket_minutes: int = Defaults.BUCKET_MINUTES,
        retry_seconds: float = PollIntervals.retry_backoff_seconds,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.source = source
        self.bucket_minutes = bucket_minutes
        self.retry_seconds = retry_seconds
        self._sleep = sleep

    async def fetch_sessions(self, live_ids: list[str]) -> list[Session]:
        """Returns every requested session, in request order."""
        fetched: dict[str, Session] = {}
        pending = list(dict.fromkeys(live_ids))
        attempt = 0

        while pending:
            attempt += 1
            results = await asyncio.gather(
                *(self.source.get_session(live_id) for live_id in pending),
                return_exceptions=True,
            )

            failed = []
            for live_id, result in zip(pending, results):
                if isinstance(result, RemoteError):
                    log.warning(
                        "Lookback session %s failed (attempt %d): %s", live_id, attempt, result
                    )
                    failed.append(live_id)
                elif isinstance(result, BaseException):
                    raise result
                else:
                    fetched[live_id] = result

            pending = failed
            if pending:
                log.info(
                    "Retrying %d lookback session(s) in %.0fs.", len(pending), self.retry_seconds
                )
                await self._sleep(self.retry_seconds)

        return [fetched[live_id] for live_id in dict.fromkeys(live_ids)]

    async def compute(self, live_ids: list[str], registry: ViewerRegistry) -> Baselines:
        """Fetches the sessions, records their viewers as historical, and computes baselines."""
        if not live_ids:
            log.info("No previous sessions to build baselines from.")
            return Baselines()

        sessions = await self.fetch_sessions(live_ids)
        registry.record_historical(sessions)
        baselines = compute_baselines(sessions, self.bucket_minutes)
        log.info(
            "Baselines from %d session(s): messages=%s active=%s online=%s",
            baselines.session_count,
            _fmt(baselines.message_rate),
            _fmt(baselines.active_viewers),
            _fmt(baselines.online),
        )
        return baselines


def _fmt(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.1f}"
