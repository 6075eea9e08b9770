# tests/unit/test_poller.py
import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock, call

import pytest

from livestats.analytics.baselines import Baselines
from livestats.core.constants import PollIntervals, StatusLabel
from livestats.core.errors import LivenessUnknown, RemoteError
from livestats.core.models import ChannelInfo, RoomStatus
from livestats.platforms.bilibili.poller import PollerState, SessionPoller

INTERVALS = PollIntervals(
    live_seconds=30, offline_seconds=15, empty_seconds=10, channel_retry_seconds=10, retry_backoff_seconds=5
)


@pytest.fixture
def room_client():
    rc = MagicMock()
    rc.get_room_status = AsyncMock(return_value=RoomStatus(live=True, uid=42))
    return rc


@pytest.fixture
def source():
    return MagicMock()


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def poller(room_client, source, sleep):
    p = SessionPoller(
        room_client, source, MagicMock(), "21452505", bucket_minutes=10, lookback=2, intervals=INTERVALS, sleep=sleep
    )
    p.calculator.compute = AsyncMock(return_value=Baselines(message_rate=12.0, session_count=2))
    return p


# ── OFFLINE ───────────────────────────────────────────────────────────────────

async def test_offline_room_sleeps_offline_interval(poller, room_client, sleep):
    room_client.get_room_status.return_value = RoomStatus(live=False)

    await poller.step()

    assert poller.state is PollerState.OFFLINE
    poller.presenter.show_status.assert_called_with(StatusLabel.NO_LIVE)
    sleep.assert_awaited_once_with(15)


async def test_liveness_unknown_counts_as_offline(poller, room_client, sleep):
    room_client.get_room_status.side_effect = LivenessUnknown("bad json")

    await poller.step()

    assert poller.state is PollerState.OFFLINE
    sleep.assert_awaited_once_with(15)


async def test_going_live_moves_to_detecting_without_sleep(poller, sleep):
    await poller.step()

    assert poller.state is PollerState.DETECTING
    assert poller.uid == 42
    sleep.assert_not_awaited()


# ── DETECTING ─────────────────────────────────────────────────────────────────

async def test_detecting_loads_lookback_excluding_live(poller, source):
    poller.state = PollerState.DETECTING
    poller.uid = 42
    poller.registry.historical.add(999)
    source.get_channel = AsyncMock(
        return_value=ChannelInfo(live_id="now", recent_ids=["now", "p1", "p2", "p3"])
    )

    await poller.step()

    assert poller.state is PollerState.POLLING
    assert poller.live_id == "now"
    poller.calculator.compute.assert_awaited_once_with(["p1", "p2"], poller.registry)
    poller.presenter.show_baselines.assert_called_once_with(poller.baselines)
    assert poller.baselines.message_rate == 12.0
    assert 999 not in poller.registry.historical


async def test_detecting_without_live_session_waits(poller, source, sleep):
    poller.state = PollerState.DETECTING
    source.get_channel = AsyncMock(return_value=ChannelInfo(live_id=None, recent_ids=["p1"]))

    await poller.step()

    assert poller.state is PollerState.DETECTING
    sleep.assert_awaited_once_with(10)
    poller.calculator.compute.assert_not_awaited()


async def test_detecting_live_without_uid_waits_for_channel_retry(poller, room_client, source, sleep):
    poller.state = PollerState.DETECTING
    room_client.get_room_status.return_value = RoomStatus(live=True, uid=None)
    source.get_channel = AsyncMock()

    await poller.step()

    assert poller.state is PollerState.DETECTING
    assert poller.uid is None
    source.get_channel.assert_not_awaited()
    sleep.assert_awaited_once_with(10)


async def test_detecting_channel_error_waits(poller, source, sleep):
    poller.state = PollerState.DETECTING
    source.get_channel = AsyncMock(side_effect=RemoteError("503"))

    await poller.step()

    assert poller.state is PollerState.DETECTING
    sleep.assert_awaited_once_with(10)


async def test_detecting_room_went_offline(poller, room_client, source):
    poller.state = PollerState.DETECTING
    room_client.get_room_status.return_value = RoomStatus(live=False)
    source.get_channel = AsyncMock()

    await poller.step()

    assert poller.state is PollerState.OFFLINE
    source.get_channel.assert_not_awaited()


# ── POLLING ───────────────────────────────────────────────────────────────────

def _polling(poller):
    poller.state = PollerState.POLLING
    poller.live_id = "now"
    return poller


async def test_polling_renders_series(poller, source, sleep, make_session, make_event):
    _polling(poller)
    session = make_session("now", duration_minutes=None, events=[make_event(1, 1), make_event(12, 2)])
    source.get_session = AsyncMock(return_value=session)

    await poller.step()

    poller.presenter.show_status.assert_called_with(StatusLabel.NORMAL)
    series = poller.presenter.render.call_args[0][0]
    assert series.messages.values == [1, 1]
    assert series.new_viewers.values == [1, 1]
    sleep.assert_awaited_once_with(30)


async def test_polling_empty_session_waits_without_render(poller, source, sleep, make_session):
    _polling(poller)
    source.get_session = AsyncMock(return_value=make_session("now", duration_minutes=None))

    await poller.step()

    poller.presenter.render.assert_not_called()
    sleep.assert_awaited_once_with(10)
    assert poller.state is PollerState.POLLING


async def test_polling_fetch_error_shows_status_and_stays(poller, source, sleep):
    _polling(poller)
    source.get_session = AsyncMock(side_effect=RemoteError("timeout"))

    await poller.step()

    status, detail = poller.presenter.show_status.call_args[0]
    assert status is StatusLabel.FETCH_FAILED
    assert detail
    poller.presenter.render.assert_not_called()
    sleep.assert_awaited_once_with(30)
    assert poller.state is PollerState.POLLING


async def test_polling_session_end_returns_offline(poller, room_client, source, sleep):
    _polling(poller)
    room_client.get_room_status.return_value = RoomStatus(live=False)
    source.get_session = AsyncMock()

    await poller.step()

    assert poller.state is PollerState.OFFLINE
    assert poller.live_id is None
    source.get_session.assert_not_awaited()
    sleep.assert_not_awaited()


# ── run loop ──────────────────────────────────────────────────────────────────

async def test_run_logs_unexpected_error_and_keeps_going(poller, room_client, sleep, caplog):
    room_client.get_room_status.side_effect = [RuntimeError("boom"), asyncio.CancelledError()]

    with caplog.at_level(logging.ERROR), pytest.raises(asyncio.CancelledError):
        await poller.run()

    assert room_client.get_room_status.await_count == 2
    assert sleep.await_args_list == [call(INTERVALS.retry_backoff_seconds)]
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "Error in poller loop" in errors[0].getMessage()
    assert errors[0].exc_info[0] is RuntimeError
