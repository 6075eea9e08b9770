# livestats/platforms/bilibili/presenter.py
import logging
import math
from typing import Protocol

from rich.console import Console
from rich.table import Table

from livestats.analytics.aggregator import DashboardSeries
from livestats.analytics.baselines import Baselines
from livestats.core.constants import MetricName, StatusLabel

log = logging.getLogger(__name__)


class Presenter(Protocol):
    """What the poller hands to whatever draws the dashboard."""

    def show_status(self, status: StatusLabel, detail: str | None = None) -> None: ...

    def show_baselines(self, baselines: Baselines) -> None: ...

    def render(self, series: DashboardSeries) -> None: ...


# Decimal places per float column; the ratio keeps its 3-decimal rounding.
_DECIMALS = {MetricName.ENGAGEMENT: 3}


def _cell(value: float | int, decimals: int = 1) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "-"
        return f"{value:,.{decimals}f}"
    return f"{value:,}"


def build_table(
    series: DashboardSeries, baselines: Baselines | None = None, max_rows: int | None = None
) -> Table:
    """
    One row per bucket, newest last. NaN cells show as '-'.
    When baselines are given, a trailing section lists them under the
    three metrics they apply to.
    """
    columns = series.as_list()
    labels = columns[0].labels

    table = Table(title="Current session", header_style="bold")
    table.add_column("Time", justify="right", style="bold")
    for column in columns:
        table.add_column(column.name.value, justify="right")

    start = 0 if max_rows is None else max(len(labels) - max_rows, 0)
    for idx in range(start, len(labels)):
        table.add_row(labels[idx], *(_cell(c.values[idx], _DECIMALS.get(c.name, 1)) for c in columns))

    if baselines is not None and baselines.session_count:
        table.add_section()
        avg = [baselines.message_rate, baselines.active_viewers, baselines.online]
        table.add_row(
            f"avg({baselines.session_count})",
            *("-" if v is None else f"{v:.1f}" for v in avg),
            "",
            "",
            "",
            style="dim",
        )
    return table


class ConsolePresenter:
    """Prints the dashboard table to the terminal; status changes go to the log."""

    def __init__(self, console: Console | None = None, max_rows: int = 6):
        self.console = console or Console()
        self.max_rows = max_rows
        self.status: StatusLabel | None = None
        self.baselines: Baselines | None = None

    def show_status(self, status: StatusLabel, detail: str | None = None) -> None:
        if status is self.status and detail is None:
            return
        self.status = status
        if status is StatusLabel.FETCH_FAILED:
            log.warning("%s%s", status.value, f" ({detail})" if detail else "")
        else:
            log.info("%s%s", status.value, f" ({detail})" if detail else "")

    def show_baselines(self, baselines: Baselines) -> None:
        self.baselines = baselines
        if not baselines.session_count:
            log.info("No baselines available.")
            return
        log.info("Loaded baselines from the previous %d session(s).", baselines.session_count)

    def render(self, series: DashboardSeries) -> None:
        self.console.print(build_table(series, self.baselines, self.max_rows))
