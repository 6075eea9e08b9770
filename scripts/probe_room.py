# scripts/probe_room.py
#
# One-shot check of a room against both APIs: liveness, the broadcaster's
# recent sessions, and one aggregation of the live (or latest) session.
#
# Usage:
#     python scripts/probe_room.py 21452505
import asyncio
import sys

from rich.console import Console

from livestats.analytics.aggregator import aggregate, session_intervals
from livestats.analytics.registry import ViewerRegistry
from livestats.core.clients.bilibili import BilibiliRoomClient
from livestats.core.clients.danmaku import DanmakuClient
from livestats.core.constants import Defaults
from livestats.core.errors import LiveStatsError
from livestats.platforms.bilibili.presenter import build_table


async def main(room_id: str) -> None:
    print(f"Checking room {room_id}...")

    try:
        status = await BilibiliRoomClient().get_room_status(room_id)
    except LiveStatsError as e:
        print(f"⚠️ Liveness check failed: {e}")
        return

    print(f"Live: {status.live} | Broadcaster uid: {status.uid}")
    if status.uid is None:
        print("⚠️ No uid for this room; nothing else to fetch.")
        return

    source = DanmakuClient()
    try:
        channel = await source.get_channel(status.uid)
    except LiveStatsError as e:
        print(f"⚠️ Channel fetch failed: {e}")
        return

    print(f"Current live session: {channel.live_id}")
    print(f"Recent sessions ({len(channel.recent_ids)}): {channel.recent_ids[:Defaults.LOOKBACK_SESSIONS + 1]}")

    target = channel.live_id or (channel.recent_ids[0] if channel.recent_ids else None)
    if target is None:
        return

    try:
        session = await source.get_session(target)
    except LiveStatsError as e:
        print(f"⚠️ Session fetch failed: {e}")
        return

    events = session.counted_events()
    print("-" * 40)
    print(f"Session {session.id}: {len(events)} counted events, {len(session.online_samples)} online samples")
    if not events:
        return

    width_ms = Defaults.BUCKET_MINUTES * 60 * 1000
    buckets = session_intervals(session, events, width_ms)
    series = aggregate(events, session.online_samples, buckets, ViewerRegistry())
    Console().print(build_table(series))


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/probe_room.py <room_id>")
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
