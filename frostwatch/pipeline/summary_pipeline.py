"""Morning summary pipeline: once-daily digest of freezes expected today."""

import logging
import time
import uuid
from datetime import timedelta

from frostwatch.analysis.analyzer import analyze
from frostwatch.analysis.grouper import group_locations
from frostwatch.exceptions import EmptySeriesError, PersistenceError, ProviderError
from frostwatch.models.forecast import Analysis
from frostwatch.models.location import Location
from frostwatch.models.notification import MorningSummary, NotificationKind
from frostwatch.models.reporting import TickSummary
from frostwatch.notify.formatters import render_morning_summary
from frostwatch.notify.summary import build_morning_summaries
from frostwatch.pipeline.reporting import format_summary_text
from frostwatch.pipeline.runtime import Runtime
from frostwatch.storage.store import Store

logger = logging.getLogger(__name__)


class MorningSummaryPipeline:
    def __init__(self, runtime: Runtime):
        self.rt = runtime
        self.monitor = runtime.config.monitor

    def run(self) -> TickSummary:
        start_time = time.monotonic()
        summary = TickSummary(run_id=str(uuid.uuid4()), kind="summary")
        calls_before = self.rt.forecasts.provider_calls

        try:
            with Store.open(self.rt.db_path) as store:
                locations = store.get_all_locations()
                pairs = self._analyze_all(locations, summary)
                summary.locations = len(locations)

                for morning in build_morning_summaries(pairs):
                    try:
                        self._send(store, morning, summary)
                    except PersistenceError as e:
                        logger.error("Summary for user %d: %s", morning.owner_id, e)
                        summary.errors.append(f"user {morning.owner_id}: {e}")
                    except Exception as e:
                        logger.exception("Summary for user %d failed", morning.owner_id)
                        summary.errors.append(f"user {morning.owner_id}: {e}")
        except PersistenceError as e:
            logger.error("Morning summary aborted, store unavailable: %s", e)
            summary.errors.append(str(e))

        summary.provider_calls = self.rt.forecasts.provider_calls - calls_before
        summary.duration_seconds = time.monotonic() - start_time
        logger.info(format_summary_text(summary))
        return summary

    def _analyze_all(
        self, locations: list[Location], summary: TickSummary
    ) -> list[tuple[Location, Analysis]]:
        clusters = group_locations(
            locations,
            self.rt.config.cache.radius_m,
            precision=self.rt.config.ops.grouping_precision,
        )
        summary.clusters = len(clusters)
        window = timedelta(hours=self.monitor.warning_window_hours)

        pairs: list[tuple[Location, Analysis]] = []
        for cluster in clusters:
            try:
                series = self.rt.forecasts.fetch(cluster.representative.coordinate)
            except (ProviderError, EmptySeriesError) as e:
                logger.warning("Skipping cluster %s: %s", cluster.key, e)
                summary.errors.append(f"cluster {cluster.representative.coordinate}: {e}")
                summary.skipped += len(cluster.members)
                continue
            for location in cluster.members:
                analysis = analyze(
                    series,
                    self.monitor.threshold_temp_c,
                    window,
                    tz=self.monitor.tzinfo,
                )
                pairs.append((location, analysis))
        return pairs

    def _send(self, store: Store, morning: MorningSummary, summary: TickSummary) -> None:
        notification_id = store.record_morning_summary(morning)
        summary.record_intent(NotificationKind.MORNING_SUMMARY.value)

        user = store.get_user(morning.owner_id)
        if user is None:
            logger.warning("No user %d for morning summary", morning.owner_id)
            return
        text = render_morning_summary(morning, self.monitor.tzinfo)
        if self.rt.deliverer.deliver(user.chat_id, text):
            store.mark_sent(notification_id)
            summary.delivered += 1
