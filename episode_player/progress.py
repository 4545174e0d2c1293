"""Throttled forwarding of playback position to the watch-history API."""

import math
from typing import Callable

import requests
from rich.console import Console

from .api import CatalogError
from .config import Config
from .models import ProgressReport

console = Console()

ReportFn = Callable[[ProgressReport], None]
Dispatch = Callable[[Callable[[], None]], None]


def _run_now(job: Callable[[], None]) -> None:
    job()


class ProgressReporter:
    """Samples every position update, reports roughly every 30s of media time.

    A report goes out when the whole-second position is a positive
    multiple of the interval, once per such second. A failed delivery is
    retried on the next sample whatever the position. End of media is
    always reported, as completed; after that only a failed completion
    report is sent again.

    `dispatch` runs a delivery job; pass one that starts a thread to keep
    network calls off the UI thread.
    """

    def __init__(
        self,
        report_fn: ReportFn,
        content_id: str,
        episode_id: str,
        total_duration: float | None = None,
        config: Config | None = None,
        dispatch: Dispatch | None = None,
    ):
        self._report_fn = report_fn
        self._content_id = content_id
        self._episode_id = episode_id
        self._total_duration = total_duration or 0.0
        self._config = config or Config()
        self._dispatch = dispatch or _run_now
        self._last_reported_second: int | None = None
        self._retry_due = False
        self._finished = False

    @property
    def total_duration(self) -> float:
        return self._total_duration

    def set_total_duration(self, duration: float | None) -> None:
        """Prefer the decoded duration over the catalog's once known."""
        if duration and duration > 0:
            self._total_duration = duration

    @property
    def retry_due(self) -> bool:
        return self._retry_due

    def is_complete(self, position: float) -> bool:
        if self._total_duration <= 0:
            return False
        return position >= self._config.completion_ratio * self._total_duration

    def build_report(self, position: float, completed: bool | None = None) -> ProgressReport:
        if completed is None:
            completed = self.is_complete(position)
        return ProgressReport(
            content_id=self._content_id,
            episode_id=self._episode_id,
            position=position,
            total_duration=self._total_duration,
            completed=completed,
        )

    def sample(self, position: float) -> ProgressReport | None:
        """Feed one position update; returns the report sent, if any."""
        if math.isnan(position):
            return None
        if self._finished:
            if not self._retry_due:
                return None
            # The completion report failed; send it again.
            report = self.build_report(self._total_duration, completed=True)
            self._send(report)
            return report

        second = math.floor(position)
        on_gate = (
            second > 0
            and second % self._config.progress_interval == 0
            and second != self._last_reported_second
        )
        if not (on_gate or self._retry_due):
            return None

        self._last_reported_second = second
        report = self.build_report(position)
        self._send(report)
        return report

    def finish(self) -> ProgressReport:
        """End of media: report the full duration as completed."""
        self._finished = True
        report = self.build_report(self._total_duration, completed=True)
        self._send(report)
        return report

    def reset(self) -> None:
        self._last_reported_second = None
        self._retry_due = False
        self._finished = False

    def _send(self, report: ProgressReport) -> None:
        self._retry_due = False
        self._dispatch(lambda: self._deliver(report))

    def _deliver(self, report: ProgressReport) -> None:
        try:
            self._report_fn(report)
        except (requests.RequestException, CatalogError) as e:
            self._retry_due = True
            console.print(f"[yellow]Progress report failed, retrying on next update: {e}[/yellow]")
