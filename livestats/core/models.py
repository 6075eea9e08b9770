# livestats/core/models.py
"""Typed views of the stats and room API payloads."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from livestats.core.constants import COUNTED_KINDS, EventKind


class Event(BaseModel):
    """A single chat message, gift, super chat or guard purchase."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: int = Field(alias="type")
    timestamp: int = Field(alias="sendDate")  # epoch milliseconds
    user_id: int = Field(alias="uId")
    price: float = 0.0

    @field_validator("price", mode="before")
    @classmethod
    def _missing_price_is_zero(cls, value):
        return 0.0 if value is None else value

    @property
    def is_counted(self) -> bool:
        return self.kind in COUNTED_KINDS

    @property
    def is_message(self) -> bool:
        return self.kind == EventKind.MESSAGE


class Session(BaseModel):
    """One broadcast: metadata, online-count samples and its event list."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str = Field(alias="liveId")
    start_time: int = Field(alias="startDate")
    end_time: int | None = Field(default=None, alias="stopDate")
    total_message_count: int = Field(default=0, alias="danmakusCount")
    total_revenue: float = Field(default=0.0, alias="totalIncome")
    total_interaction_count: int = Field(default=0, alias="interactionCount")
    online_samples: dict[int, float] = Field(default_factory=dict, alias="onlineRank")
    events: list[Event] = Field(default_factory=list, alias="danmakus")

    @field_validator("end_time", mode="before")
    @classmethod
    def _live_has_no_end(cls, value):
        # The API reports a still-running session with stopDate 0 or null.
        return None if not value else value

    @field_validator("online_samples", mode="before")
    @classmethod
    def _null_samples_are_empty(cls, value):
        return value or {}

    @property
    def is_live(self) -> bool:
        return self.end_time is None

    @property
    def elapsed_minutes(self) -> float:
        if self.is_live:
            return 0.0
        return (self.end_time - self.start_time) / 1000 / 60

    def counted_events(self) -> list[Event]:
        """Counted-kind events in chronological order."""
        return sorted(
            (e for e in self.events if e.is_counted), key=lambda e: e.timestamp
        )


class ChannelInfo(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    live_id: str | None = None
    recent_ids: list[str] = Field(default_factory=list)  # newest first


class RoomStatus(BaseModel):
    live: bool
    uid: int | None = None
