"""
Metric Entry

An agent's daily metric grid: increment, decrement or edit a counter and
the change is written to the backend immediately, keyed by
(user_id, date). There is no batching and no transaction; a failed write
keeps the local value and tells the user.
"""

from datetime import date
from typing import Optional
import logging

from ..config.settings import get_settings
from ..core.entities import DailyMetric, MetricRecord, MetricType
from ..core.notifications import NotificationCenter
from ..data.diagnostics import DiagnosticCategory, DiagnosticSeverity
from ..data.gateway import DAILY_METRICS, DataGateway, GatewayError

logger = logging.getLogger(__name__)


class MetricEntryUseCase:
    """
    Holds one user's record for one day and persists every change.

    Flow:
    1. load() the stored row, if any
    2. increment / decrement / set a metric (each one upserts)
    3. save_daily() to log the day explicitly
    """

    def __init__(
        self,
        gateway: DataGateway,
        user_id: str,
        day: Optional[date] = None,
        ap_step: Optional[int] = None,
        notifications: Optional[NotificationCenter] = None
    ):
        self._gateway = gateway
        self._notifications = notifications if notifications is not None else NotificationCenter()
        self.user_id = user_id
        self.day = day or date.today()
        self.ap_step = ap_step if ap_step is not None else get_settings().metrics.ap_step_cents
        self.record = MetricRecord()

    @property
    def notifications(self) -> NotificationCenter:
        return self._notifications

    def load(self) -> MetricRecord:
        """Load the stored row for the day; failures leave the record at zero."""
        try:
            rows = self._gateway.fetch_daily_metrics([self.user_id], start=self.day, end=self.day)
        except GatewayError as e:
            logger.error("Could not load metrics for %s on %s: %s", self.user_id, self.day, e)
            self._gateway.diagnostics.record(
                DiagnosticCategory.FETCH_FAILURE,
                str(e),
                source=DAILY_METRICS,
                severity=DiagnosticSeverity.ERROR,
                user_id=self.user_id
            )
            self._notifications.error("Failed to load today's metrics")
            return self.record

        if rows:
            self.record = rows[0].record.copy()
        return self.record

    def increment(self, metric) -> bool:
        """Add one (or one AP step) and persist."""
        metric = MetricType.parse(metric)
        self.record.increment(metric, self.ap_step)
        self._notifications.notify(
            "Metric Updated", f"{metric.value.upper()} has been increased"
        )
        return self._persist()

    def decrement(self, metric) -> bool:
        """Subtract one (or one AP step), never below zero, and persist."""
        metric = MetricType.parse(metric)
        self.record.decrement(metric, self.ap_step)
        self._notifications.notify(
            "Metric Updated", f"{metric.value.upper()} has been decreased"
        )
        return self._persist()

    def set_value(self, metric, value: int) -> bool:
        """Direct edit. Invalid values raise ValueError and nothing is written."""
        self.record.set(metric, value)
        return self._persist()

    def reset(self) -> bool:
        """Zero the day's record; the row is kept, not deleted."""
        self.record.reset()
        return self._persist()

    def save_daily(self) -> bool:
        """Log the day's metrics. An all-zero record is refused."""
        if self.record.is_empty():
            self._notifications.error(
                "Please add at least 1 metric before logging",
                title="No Metrics to Log"
            )
            return False

        if self._persist():
            self._notifications.notify("Success", "Today's metrics have been saved to history")
            return True
        return False

    def _persist(self) -> bool:
        row = DailyMetric(user_id=self.user_id, day=self.day, record=self.record.copy())
        try:
            self._gateway.upsert_daily_metric(row)
        except GatewayError as e:
            logger.error(
                "Error saving daily metrics for %s on %s: %s", self.user_id, self.day, e
            )
            self._gateway.diagnostics.record(
                DiagnosticCategory.WRITE_FAILURE,
                str(e),
                source=DAILY_METRICS,
                severity=DiagnosticSeverity.ERROR,
                user_id=self.user_id,
                metrics=self.record.to_dict()
            )
            self._notifications.error("Failed to save metrics")
            return False
        return True
