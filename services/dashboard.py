"""KPI aggregation for the dashboard views."""

from __future__ import annotations

from typing import Sequence

from app.schemas import Alert, BatchReading, DashboardSummary, SimulationStatus
from models.records import Severity


class DashboardAggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def summarize(
        self,
        readings: Sequence[BatchReading],
        alerts: Sequence[Alert],
        status: SimulationStatus,
    ) -> DashboardSummary:
        open_alerts = [alert for alert in alerts if not alert.acknowledged]
        latest = max(readings, key=lambda reading: reading.timestamp, default=None)
        return DashboardSummary(
            total_batches=len({reading.batch_id for reading in readings}),
            active_alerts=len(open_alerts),
            critical_issues=sum(1 for alert in open_alerts if alert.severity is Severity.critical),
            highest_open_severity=max(
                (alert.severity for alert in open_alerts),
                key=lambda severity: severity.rank,
                default=None,
            ),
            simulation=status,
            latest_reading=latest,
        )
