"""Poll pipeline: one forecast tick across every registered location."""

import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import timedelta

from frostwatch.analysis.analyzer import analyze
from frostwatch.analysis.grouper import group_locations
from frostwatch.exceptions import EmptySeriesError, PersistenceError, ProviderError
from frostwatch.models.common import utc_now
from frostwatch.models.forecast import ForecastSeries
from frostwatch.models.location import Cluster, Location
from frostwatch.models.notification import (
    NotificationIntent,
    NotificationKind,
    NotificationRecord,
)
from frostwatch.models.reporting import TickSummary
from frostwatch.notify.formatters import render_notification
from frostwatch.pipeline.reporting import format_summary_text
from frostwatch.pipeline.runtime import Runtime
from frostwatch.storage.store import Store

logger = logging.getLogger(__name__)

# Undelivered notifications older than this are not retried
MAX_RESEND_AGE = timedelta(hours=12)


@dataclass
class _ClusterOutcome:
    intents: list[str] = field(default_factory=list)
    delivered: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


class PollPipeline:
    def __init__(self, runtime: Runtime):
        self.rt = runtime
        self.monitor = runtime.config.monitor
        self.warning_window = timedelta(hours=self.monitor.warning_window_hours)

    def run(self) -> TickSummary:
        """Execute one polling tick."""
        start_time = time.monotonic()
        summary = TickSummary(run_id=str(uuid.uuid4()), kind="poll")
        calls_before = self.rt.forecasts.provider_calls

        try:
            with Store.open(self.rt.db_path) as store:
                unsent = store.get_unsent()
                locations = store.get_all_locations()
                self._resend_unsent(store, unsent, summary)
        except PersistenceError as e:
            logger.error("Poll aborted, store unavailable: %s", e)
            summary.errors.append(str(e))
            return self._finish(summary, start_time, calls_before)

        self.rt.engine.forget_missing({loc.id for loc in locations})
        summary.locations = len(locations)
        if not locations:
            logger.info("No locations to check")
            return self._finish(summary, start_time, calls_before)

        clusters = group_locations(
            locations,
            self.rt.config.cache.radius_m,
            precision=self.rt.config.ops.grouping_precision,
        )
        summary.clusters = len(clusters)

        with ThreadPoolExecutor(
            max_workers=self.rt.config.ops.max_workers,
            thread_name_prefix="poll",
        ) as pool:
            outcomes = list(pool.map(self._process_cluster, clusters))

        for outcome in outcomes:
            for kind in outcome.intents:
                summary.record_intent(kind)
            summary.delivered += outcome.delivered
            summary.skipped += outcome.skipped
            summary.errors.extend(outcome.errors)

        return self._finish(summary, start_time, calls_before)

    def _process_cluster(self, cluster: Cluster) -> _ClusterOutcome:
        outcome = _ClusterOutcome()
        rep = cluster.representative
        try:
            series = self.rt.forecasts.fetch(rep.coordinate)
        except (ProviderError, EmptySeriesError) as e:
            logger.warning(
                "Skipping cluster %s (%d locations): %s", cluster.key, len(cluster.members), e
            )
            outcome.errors.append(f"cluster {rep.coordinate}: {e}")
            outcome.skipped += len(cluster.members)
            return outcome
        except Exception as e:
            logger.exception("Unexpected error fetching forecast for %s", rep.coordinate)
            outcome.errors.append(f"cluster {rep.coordinate}: {e}")
            outcome.skipped += len(cluster.members)
            return outcome

        try:
            store = Store.open(self.rt.db_path)
        except PersistenceError as e:
            logger.error("Store unavailable for cluster %s: %s", cluster.key, e)
            outcome.errors.append(str(e))
            outcome.skipped += len(cluster.members)
            return outcome

        with store:
            for location in cluster.members:
                try:
                    self._process_location(store, location, series, outcome)
                except EmptySeriesError as e:
                    logger.warning("Location %d: %s", location.id, e)
                    outcome.skipped += 1
                except PersistenceError as e:
                    logger.error("Location %d: %s", location.id, e)
                    outcome.errors.append(f"location {location.id}: {e}")
                    outcome.skipped += 1
                except Exception as e:
                    logger.exception("Location %d failed", location.id)
                    outcome.errors.append(f"location {location.id}: {e}")
                    outcome.skipped += 1
        return outcome

    def _process_location(
        self,
        store: Store,
        location: Location,
        series: ForecastSeries,
        outcome: _ClusterOutcome,
    ) -> None:
        analysis = analyze(
            series,
            self.monitor.threshold_temp_c,
            self.warning_window,
            tz=self.monitor.tzinfo,
        )
        last = store.get_last_notification(location.id)
        intent = self.rt.engine.decide(location, analysis, last)
        if intent is None:
            return

        try:
            notification_id = store.record_notification(intent)
        except PersistenceError:
            self.rt.engine.rollback(location.id)
            raise
        self.rt.engine.confirm(location.id, notification_id)
        outcome.intents.append(intent.kind.value)

        if self._deliver(store, location, intent, notification_id):
            outcome.delivered += 1

    def _deliver(
        self,
        store: Store,
        location: Location,
        intent: NotificationIntent,
        notification_id: int,
    ) -> bool:
        user = store.get_user(location.owner_id)
        if user is None:
            logger.warning("Location %d has no owner on record", location.id)
            return False
        text = render_notification(
            intent.kind,
            location.name,
            intent.temperature,
            intent.event_time,
            self.monitor.threshold_temp_c,
            self.monitor.tzinfo,
        )
        if not self.rt.deliverer.deliver(user.chat_id, text):
            return False
        store.mark_sent(notification_id)
        return True

    def _resend_unsent(
        self, store: Store, unsent: list[NotificationRecord], summary: TickSummary
    ) -> None:
        """Retry delivery of recent notifications that never went out.

        A failure affects only that notification; it is tried again next tick.
        """
        cutoff = utc_now() - MAX_RESEND_AGE
        for record in unsent:
            if record.kind == NotificationKind.MORNING_SUMMARY:
                continue
            if record.created_at is None or record.created_at < cutoff:
                continue
            try:
                if self._resend(store, record):
                    summary.delivered += 1
                    logger.info("Re-delivered notification %d", record.id)
            except PersistenceError as e:
                logger.error("Re-delivery of notification %d: %s", record.id, e)
                summary.errors.append(f"notification {record.id}: {e}")
            except Exception as e:
                logger.exception("Re-delivery of notification %d failed", record.id)
                summary.errors.append(f"notification {record.id}: {e}")

    def _resend(self, store: Store, record: NotificationRecord) -> bool:
        location = store.get_location(record.location_id)
        if location is None:
            return False
        intent = NotificationIntent(
            location_id=record.location_id,
            kind=record.kind,
            temperature=record.temperature,
            event_time=record.event_time,
        )
        return self._deliver(store, location, intent, record.id)

    def _finish(
        self, summary: TickSummary, start_time: float, calls_before: int
    ) -> TickSummary:
        summary.provider_calls = self.rt.forecasts.provider_calls - calls_before
        summary.duration_seconds = time.monotonic() - start_time
        logger.info(format_summary_text(summary))
        return summary
