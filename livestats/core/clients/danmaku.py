# livestats/core/clients/danmaku.py
import asyncio
import logging

import aiohttp
from pydantic import ValidationError

from livestats.core.constants import DanmakuApiConfig, HttpConfig
from livestats.core.errors import RemoteError
from livestats.core.models import ChannelInfo, Session

log = logging.getLogger(__name__)


class DanmakuClient:
    """
    A reusable async client for the danmaku stats API.
    Fetches a session's full event list and a channel's recent sessions,
    and normalizes both into typed models. Every failure surfaces as RemoteError.
    """

    def __init__(self, timeout_seconds: float = HttpConfig.TIMEOUT_SECONDS):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def _get_json(self, url: str, params: dict[str, str]) -> dict:
        """GETs url and returns the response envelope once its code checks out."""
        try:
            async with aiohttp.ClientSession(
                timeout=self.timeout, headers={"User-Agent": HttpConfig.USER_AGENT}
            ) as http:
                async with http.get(url, params=params) as resp:
                    if resp.status != 200:
                        raise RemoteError(f"Stats API returned HTTP {resp.status} for {url}.")
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteError(f"Network error calling stats API: {e!r}") from e
        except ValueError as e:
            raise RemoteError(f"Stats API returned a non-JSON body: {e}") from e

        if not isinstance(data, dict):
            raise RemoteError("Stats API returned an unexpected envelope.")
        if data.get("code") != DanmakuApiConfig.OK_CODE:
            raise RemoteError(data.get("message") or f"Stats API code {data.get('code')}")
        return data

    async def get_session(self, live_id: str) -> Session:
        """
        Fetches one session with its events and online-count samples.
        The session is live when the returned model has no end_time.
        """
        data = await self._get_json(
            DanmakuApiConfig.LIVE_URL,
            {"includeExtra": "true", "liveId": str(live_id)},
        )
        try:
            payload = data["data"]["data"]
            live = payload["live"]
            extra = live.get("extra") or {}
            session = Session.model_validate(
                {
                    **live,
                    "onlineRank": extra.get("onlineRank"),
                    "danmakus": payload.get("danmakus") or [],
                }
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise RemoteError(f"Malformed session payload for {live_id}: {e}") from e

        log.debug(
            "Fetched session %s: %d events, %d online samples.",
            session.id,
            len(session.events),
            len(session.online_samples),
        )
        return session

    async def get_channel(self, uid: int) -> ChannelInfo:
        """Returns the channel's current live session id (if any) and its recent sessions."""
        data = await self._get_json(DanmakuApiConfig.CHANNEL_URL, {"uid": str(uid)})
        try:
            body = data["data"]
            living = body["channel"].get("livingInfo")
            lives = body.get("lives") or []
            return ChannelInfo(
                live_id=living.get("liveId") if living else None,
                recent_ids=[live["liveId"] for live in lives],
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise RemoteError(f"Malformed channel payload for uid {uid}: {e}") from e
