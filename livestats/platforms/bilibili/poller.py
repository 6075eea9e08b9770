# livestats/platforms/bilibili/poller.py
import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, tzinfo
from enum import Enum

from livestats.analytics.aggregator import DashboardSeries, aggregate, session_intervals
from livestats.analytics.baselines import BaselineCalculator, Baselines
from livestats.analytics.registry import ViewerRegistry
from livestats.core.clients.bilibili import BilibiliRoomClient
from livestats.core.clients.danmaku import DanmakuClient
from livestats.core.constants import Defaults, PollIntervals, StatusLabel
from livestats.core.errors import EmptySession, LivenessUnknown, RemoteError
from livestats.platforms.bilibili.presenter import Presenter

log = logging.getLogger(__name__)


class PollerState(str, Enum):
    OFFLINE = "offline"
    DETECTING = "detecting"
    POLLING = "polling"


class SessionPoller:
    """
    Watches one live room for the lifetime of the process.

    OFFLINE polls liveness. DETECTING resolves the current session and loads
    baselines from the previous ones. POLLING refetches the session's events
    and re-renders the six series until a liveness check says it ended.
    """

    def __init__(
        self,
        room_client: BilibiliRoomClient,
        source: DanmakuClient,
        presenter: Presenter,
        room_id: str,
        bucket_minutes: int = Defaults.BUCKET_MINUTES,
        lookback: int = Defaults.LOOKBACK_SESSIONS,
        intervals: PollIntervals = PollIntervals(),
        tz: tzinfo | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.room_client = room_client
        self.source = source
        self.presenter = presenter
        self.room_id = room_id
        self.bucket_minutes = bucket_minutes
        self.lookback = lookback
        self.intervals = intervals
        self.tz = tz
        self._sleep = sleep

        self.calculator = BaselineCalculator(
            source,
            bucket_minutes=bucket_minutes,
            retry_seconds=intervals.retry_backoff_seconds,
            sleep=sleep,
        )
        self.registry = ViewerRegistry()
        self.baselines = Baselines()
        self.state = PollerState.OFFLINE
        self.uid: int | None = None
        self.live_id: str | None = None

    async def run(self) -> None:
        log.info("Watching room %s (%d-minute buckets).", self.room_id, self.bucket_minutes)
        while True:
            try:
                await self.step()
            except Exception:
                log.error("Error in poller loop (state=%s)", self.state.value, exc_info=True)
                await self._sleep(self.intervals.retry_backoff_seconds)

    async def step(self) -> None:
        """Runs one cycle of the current state, including its trailing sleep."""
        if self.state is PollerState.OFFLINE:
            await self._wait_for_live()
        elif self.state is PollerState.DETECTING:
            await self._detect_session()
        else:
            await self._refresh()

    async def is_live(self) -> bool:
        """Liveness check; an unreadable room counts as offline."""
        try:
            status = await self.room_client.get_room_status(self.room_id)
        except LivenessUnknown as e:
            log.warning("Liveness check failed, treating room as offline: %s", e)
            return False
        if status.live and status.uid:
            self.uid = status.uid
        return status.live

    async def _wait_for_live(self) -> None:
        if await self.is_live():
            log.info("Room %s went LIVE.", self.room_id)
            self.presenter.show_status(StatusLabel.NORMAL)
            self.state = PollerState.DETECTING
            return

        self.presenter.show_status(StatusLabel.NO_LIVE)
        await self._sleep(self.intervals.offline_seconds)

    async def _detect_session(self) -> None:
        if not await self.is_live():
            self._go_offline()
            return

        if self.uid is None:
            log.warning("Room %s is live but its broadcaster uid is unknown.", self.room_id)
            await self._sleep(self.intervals.channel_retry_seconds)
            return

        try:
            channel = await self.source.get_channel(self.uid)
        except RemoteError as e:
            log.warning("Could not load channel for uid %s: %s", self.uid, e)
            await self._sleep(self.intervals.channel_retry_seconds)
            return

        if channel.live_id is None:
            log.info("Stats API has not picked up the live session for uid %s yet.", self.uid)
            await self._sleep(self.intervals.channel_retry_seconds)
            return

        self.live_id = channel.live_id
        self.registry.reset()
        previous = [i for i in channel.recent_ids if i != channel.live_id][: self.lookback]
        log.info("Tracking session %s; loading %d previous session(s).", self.live_id, len(previous))

        self.baselines = await self.calculator.compute(previous, self.registry)
        self.presenter.show_baselines(self.baselines)
        self.state = PollerState.POLLING

    async def _refresh(self) -> None:
        if not await self.is_live():
            self._go_offline()
            return

        try:
            series = await self.refresh_series()
        except RemoteError as e:
            log.warning("Failed to fetch session %s: %s", self.live_id, e)
            self.presenter.show_status(
                StatusLabel.FETCH_FAILED, datetime.now(self.tz).strftime("%H:%M:%S")
            )
            await self._sleep(self.intervals.live_seconds)
            return
        except EmptySession:
            log.debug("Session %s has no events yet.", self.live_id)
            await self._sleep(self.intervals.empty_seconds)
            return

        self.presenter.show_status(StatusLabel.NORMAL)
        self.presenter.render(series)
        await self._sleep(self.intervals.live_seconds)

    async def refresh_series(self) -> DashboardSeries:
        """Fetches the tracked session and aggregates it. Raises EmptySession if it has no events."""
        session = await self.source.get_session(self.live_id)
        events = session.counted_events()
        if not events:
            raise EmptySession(session.id)

        buckets = session_intervals(session, events, self.bucket_minutes * 60 * 1000)
        return aggregate(events, session.online_samples, buckets, self.registry, self.tz)

    def _go_offline(self) -> None:
        log.info("Room %s went OFFLINE.", self.room_id)
        self.state = PollerState.OFFLINE
        self.live_id = None
