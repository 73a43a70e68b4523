"""Per-run reporting models."""

from dataclasses import dataclass, field

from frostwatch.models.common import RunId


@dataclass
class TickSummary:
    run_id: RunId
    kind: str  # "poll" or "summary"
    locations: int = 0
    clusters: int = 0
    provider_calls: int = 0
    intents: int = 0
    delivered: int = 0
    skipped: int = 0
    intents_by_kind: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def record_intent(self, kind: str) -> None:
        self.intents += 1
        self.intents_by_kind[kind] = self.intents_by_kind.get(kind, 0) + 1
