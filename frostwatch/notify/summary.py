"""Morning summary: one message per owner listing locations that freeze today."""

from collections.abc import Iterable

from frostwatch.models.forecast import Analysis
from frostwatch.models.location import Location
from frostwatch.models.notification import MorningSummary, SummaryEntry


def build_morning_summaries(
    pairs: Iterable[tuple[Location, Analysis]],
) -> list[MorningSummary]:
    """Aggregate freeze-today locations by owner, preserving input order."""
    by_owner: dict[int, list[SummaryEntry]] = {}
    for location, analysis in pairs:
        if not analysis.freeze_expected_today:
            continue
        by_owner.setdefault(location.owner_id, []).append(
            SummaryEntry(
                location_id=location.id,
                name=location.name,
                temperature=analysis.first_freeze_temp,
                event_time=analysis.first_freeze_time,
            )
        )
    return [
        MorningSummary(owner_id=owner_id, entries=tuple(entries))
        for owner_id, entries in by_owner.items()
    ]
