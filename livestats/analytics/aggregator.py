# livestats/analytics/aggregator.py
"""Turns a session's raw events into the six per-bucket dashboard series."""

import logging
import math
from dataclasses import dataclass, field
from datetime import tzinfo

from livestats.analytics.intervals import build_intervals, format_label, locate_bucket
from livestats.analytics.registry import ViewerRegistry
from livestats.core.constants import MetricName
from livestats.core.models import Event, Session

log = logging.getLogger(__name__)

NAN = float("nan")


@dataclass
class MetricSeries:
    name: MetricName
    labels: list[str]
    values: list[float]


@dataclass
class DashboardSeries:
    messages: MetricSeries
    active_viewers: MetricSeries
    online: MetricSeries
    revenue: MetricSeries
    engagement: MetricSeries
    new_viewers: MetricSeries

    def as_list(self) -> list[MetricSeries]:
        """Series in display order."""
        return [
            self.messages,
            self.active_viewers,
            self.online,
            self.revenue,
            self.engagement,
            self.new_viewers,
        ]


@dataclass
class _Bucket:
    messages: int = 0
    active: set[int] = field(default_factory=set)
    revenue: float = 0.0
    new_viewers: int = 0
    online: list[float] = field(default_factory=list)

    def mean_online(self) -> float:
        if not self.online:
            return NAN
        return sum(self.online) / len(self.online)


def session_intervals(session: Session, events: list[Event], width_ms: int) -> list[int]:
    """
    Bucket starts for a live session, from its start to its latest event.
    Events logged before the recorded start pull the span back to them.
    Always returns at least one bucket so every event has a home.
    """
    start = min(session.start_time, events[0].timestamp)
    buckets = build_intervals(start, events[-1].timestamp, width_ms)
    return buckets or [start]


def aggregate(
    events: list[Event],
    online_samples: dict[int, float],
    buckets: list[int],
    registry: ViewerRegistry,
    tz: tzinfo | None = None,
) -> DashboardSeries:
    """
    Buckets events and online samples and derives the six series.

    Callers must not pass an empty event list; an empty bucket bin yields
    NaN rather than raising, and NaN means "no data, do not plot".
    """
    counted = sorted((e for e in events if e.is_counted), key=lambda e: e.timestamp)
    bins = {start: _Bucket() for start in buckets}

    # New-viewer classification depends on chronological order.
    registry.begin_pass()
    for event in counted:
        b = bins[locate_bucket(event.timestamp, buckets)]
        if event.is_message:
            b.messages += 1
        else:
            b.revenue += event.price
        b.active.add(event.user_id)
        if registry.mark_seen(event.user_id):
            b.new_viewers += 1

    for ts, online in online_samples.items():
        bins[locate_bucket(int(ts), buckets)].online.append(online)

    ordered = [bins[start] for start in buckets]
    labels = [format_label(start, tz) for start in buckets]

    online_means = [b.mean_online() for b in ordered]
    ratios = []
    for idx, (b, mean) in enumerate(zip(ordered, online_means)):
        # The first bucket has no predecessor to compare against.
        if idx == 0 or math.isnan(mean) or mean == 0:
            ratios.append(NAN)
        else:
            ratios.append(round(len(b.active) / mean, 3))

    log.debug(
        "Aggregated %d events and %d online samples into %d buckets.",
        len(counted),
        len(online_samples),
        len(buckets),
    )

    def series(name: MetricName, values: list[float]) -> MetricSeries:
        return MetricSeries(name=name, labels=list(labels), values=values)

    return DashboardSeries(
        messages=series(MetricName.MESSAGES, [b.messages for b in ordered]),
        active_viewers=series(MetricName.ACTIVE_VIEWERS, [len(b.active) for b in ordered]),
        online=series(
            MetricName.ONLINE,
            [NAN if math.isnan(m) else round(m, 1) for m in online_means],
        ),
        revenue=series(MetricName.REVENUE, [b.revenue for b in ordered]),
        engagement=series(MetricName.ENGAGEMENT, ratios),
        new_viewers=series(MetricName.NEW_VIEWERS, [b.new_viewers for b in ordered]),
    )
