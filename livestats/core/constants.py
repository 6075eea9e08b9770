# livestats/core/constants.py
from enum import Enum, IntEnum
from dataclasses import dataclass


class EventKind(IntEnum):
    # Wire values of the "type" field on a danmaku record
    MESSAGE = 0
    GIFT = 1
    SUPER_CHAT = 2
    GUARD_PURCHASE = 3


COUNTED_KINDS = frozenset(EventKind)


class StatusLabel(str, Enum):
    NO_LIVE = "No live session"
    FETCH_FAILED = "Failed to fetch session events"
    NORMAL = "Current session"


class MetricName(str, Enum):
    MESSAGES = "Messages"
    ACTIVE_VIEWERS = "Active viewers"
    ONLINE = "Online"
    REVENUE = "Revenue"
    ENGAGEMENT = "Active/online ratio"
    NEW_VIEWERS = "New viewers"


class DanmakuApiConfig:
    BASE_URL = "https://api.ukamnads.icu/api/v2"
    CHANNEL_URL = BASE_URL + "/channel"
    LIVE_URL = BASE_URL + "/live"
    OK_CODE = 200


class BilibiliConfig:
    ROOM_INFO_URL = "https://api.live.bilibili.com/xlive/web-room/v1/index/getInfoByRoom"
    OFFLINE_STATUS = 0


class HttpConfig:
    USER_AGENT = "LiveStats/1.0"
    TIMEOUT_SECONDS = 15


class BaselineConfig:
    ONLINE_LOW_TRIM_FRACTION = 0.1  # only the low tail is dropped
    SLOT_MS = 60 * 1000  # minute slots for the active-viewer timeline


@dataclass(frozen=True)
class PollIntervals:
    live_seconds: float = 30.0  # refresh while a session is live
    offline_seconds: float = 15.0  # liveness poll while offline
    empty_seconds: float = 10.0  # session live but no events yet
    channel_retry_seconds: float = 10.0  # channel has no live session yet
    retry_backoff_seconds: float = 5.0  # refetch of failed lookback sessions


class Defaults:
    BUCKET_MINUTES = 10
    LOOKBACK_SESSIONS = 10
