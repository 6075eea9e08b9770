# livestats/platforms/bilibili/main.py
import asyncio
import logging
from zoneinfo import ZoneInfo

import sentry_sdk

from livestats.core.clients.bilibili import BilibiliRoomClient
from livestats.core.clients.danmaku import DanmakuClient
from livestats.core.config import settings
from livestats.core.constants import PollIntervals
from livestats.core.logger import setup_logging
from livestats.platforms.bilibili.poller import SessionPoller
from livestats.platforms.bilibili.presenter import ConsolePresenter, Presenter

log = logging.getLogger(__name__)


def build_poller(config, presenter: Presenter | None = None) -> SessionPoller:
    """Wires clients, presenter and poller from a Settings object."""
    intervals = PollIntervals(
        live_seconds=config.POLL_LIVE_SECONDS,
        offline_seconds=config.POLL_OFFLINE_SECONDS,
        empty_seconds=config.POLL_EMPTY_SECONDS,
        channel_retry_seconds=config.CHANNEL_RETRY_SECONDS,
        retry_backoff_seconds=config.RETRY_BACKOFF_SECONDS,
    )
    tz = ZoneInfo(config.LABEL_TIMEZONE) if config.LABEL_TIMEZONE else None
    return SessionPoller(
        room_client=BilibiliRoomClient(),
        source=DanmakuClient(),
        presenter=presenter or ConsolePresenter(),
        room_id=config.LIVE_ROOM_ID,
        bucket_minutes=config.BUCKET_MINUTES,
        lookback=config.LOOKBACK_SESSIONS,
        intervals=intervals,
        tz=tz,
    )


def main() -> None:
    if settings.SENTRY_DSN:
        sentry_sdk.init(dsn=settings.SENTRY_DSN)

    setup_logging(level=settings.LOG_LEVEL.upper())
    log.info("-" * 40)
    log.info("Live stats poller starting for room %s", settings.LIVE_ROOM_ID)
    log.info("-" * 40)

    poller = build_poller(settings)
    try:
        asyncio.run(poller.run())
    except KeyboardInterrupt:
        log.info("Stopped.")


if __name__ == "__main__":
    main()
