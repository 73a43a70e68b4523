"""Output formatters for tick summaries."""

import json
from dataclasses import asdict

from frostwatch.models.reporting import TickSummary


def format_summary_text(s: TickSummary) -> str:
    """One-line summary for logging."""
    kinds = ", ".join(f"{k}={v}" for k, v in sorted(s.intents_by_kind.items())) or "none"
    text = (
        f"=== {s.kind.capitalize()} complete | Run {s.run_id[:8]} === "
        f"{s.locations} locations in {s.clusters} clusters, "
        f"{s.provider_calls} provider calls, "
        f"intents: {kinds}, delivered {s.delivered}, skipped {s.skipped}"
    )
    if s.errors:
        text += f", errors {len(s.errors)}"
    return text + f" ({s.duration_seconds:.1f}s)"


def format_summary_json(s: TickSummary) -> str:
    """JSON summary for programmatic consumption."""
    return json.dumps(asdict(s), indent=2)
