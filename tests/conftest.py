# tests/conftest.py
#
# Module-level sys.modules patch runs during collection, before any test file
# imports livestats modules, so config.py never goes looking for a .env file.
import sys
from unittest.mock import MagicMock

import pytest

# ── Patch settings before any livestats import ───────────────────────────────
_mock_settings = MagicMock()
_mock_settings.LIVE_ROOM_ID = "21452505"
_mock_settings.BUCKET_MINUTES = 10
_mock_settings.LOOKBACK_SESSIONS = 10
_mock_settings.POLL_LIVE_SECONDS = 30.0
_mock_settings.POLL_OFFLINE_SECONDS = 15.0
_mock_settings.POLL_EMPTY_SECONDS = 10.0
_mock_settings.CHANNEL_RETRY_SECONDS = 10.0
_mock_settings.RETRY_BACKOFF_SECONDS = 5.0
_mock_settings.LABEL_TIMEZONE = "UTC"
_mock_settings.LOG_LEVEL = "INFO"
_mock_settings.SENTRY_DSN = None

_config_mod = MagicMock()
_config_mod.settings = _mock_settings
sys.modules["livestats.core.config"] = _config_mod

# ── Safe to import livestats after the patch ─────────────────────────────────
from livestats.core.models import Event, Session  # noqa: E402

# 2024-01-01 12:00:00 UTC in epoch milliseconds
T0 = 1_704_110_400_000
MINUTE = 60 * 1000


@pytest.fixture
def mock_settings():
    return _mock_settings


@pytest.fixture
def make_event():
    """Builds an Event at T0 + minutes."""

    def _make(minutes: float, user_id: int, kind: int = 0, price: float = 0.0) -> Event:
        return Event(
            kind=kind,
            timestamp=T0 + int(minutes * MINUTE),
            user_id=user_id,
            price=price,
        )

    return _make


@pytest.fixture
def make_session():
    """Builds a Session starting at T0; duration_minutes=None leaves it live."""

    def _make(
        live_id: str = "live-1",
        events: list[Event] | None = None,
        duration_minutes: float | None = 60,
        message_count: int = 0,
        online: dict[int, float] | None = None,
    ) -> Session:
        return Session(
            id=live_id,
            start_time=T0,
            end_time=None if duration_minutes is None else T0 + int(duration_minutes * MINUTE),
            total_message_count=message_count,
            online_samples=online or {},
            events=events or [],
        )

    return _make


def danmaku_payload(events: list[dict], live: dict | None = None) -> dict:
    """A stats API /live envelope in wire format."""
    live = live or {
        "liveId": "live-1",
        "startDate": T0,
        "stopDate": 0,
        "danmakusCount": len(events),
        "totalIncome": 0,
        "interactionCount": 0,
        "extra": {"onlineRank": {}},
    }
    return {"code": 200, "message": "ok", "data": {"data": {"danmakus": events, "live": live}}}


@pytest.fixture
def wire_session():
    return danmaku_payload
