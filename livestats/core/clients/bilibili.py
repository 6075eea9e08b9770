# livestats/core/clients/bilibili.py
import asyncio
import logging

import aiohttp

from livestats.core.constants import BilibiliConfig, HttpConfig
from livestats.core.errors import LivenessUnknown
from livestats.core.models import RoomStatus

log = logging.getLogger(__name__)


class BilibiliRoomClient:
    """Checks whether a live room is broadcasting and who owns it."""

    def __init__(self, timeout_seconds: float = HttpConfig.TIMEOUT_SECONDS):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def get_room_status(self, room_id: str) -> RoomStatus:
        """
        Returns the room's live flag and the broadcaster's uid.
        Room ids that are empty or not numeric are reported offline without a request.
        Raises LivenessUnknown if the room API can't be read.
        """
        room_id = str(room_id).strip()
        if not room_id.isdigit():
            return RoomStatus(live=False)

        try:
            async with aiohttp.ClientSession(
                timeout=self.timeout, headers={"User-Agent": HttpConfig.USER_AGENT}
            ) as http:
                async with http.get(
                    BilibiliConfig.ROOM_INFO_URL, params={"room_id": room_id}
                ) as resp:
                    if resp.status != 200:
                        raise LivenessUnknown(f"Room API returned HTTP {resp.status}.")
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise LivenessUnknown(f"Could not read room {room_id}: {e!r}") from e

        try:
            room_info = data["data"]["room_info"]
            live = room_info["live_status"] != BilibiliConfig.OFFLINE_STATUS
            uid = room_info.get("uid")
            return RoomStatus(live=live, uid=int(uid) if uid else None)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise LivenessUnknown(f"Malformed room payload for {room_id}: {e}") from e
