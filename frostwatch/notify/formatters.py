"""Plain-text rendering of notifications for chat delivery."""

from datetime import datetime, tzinfo

from frostwatch.models.notification import MorningSummary, NotificationKind


def _fmt_temp(temp: float | None) -> str:
    return "n/a" if temp is None else f"{temp:.1f}°C"


def _fmt_time(when: datetime | None, tz: tzinfo, with_date: bool = True) -> str:
    if when is None:
        return "unknown"
    local = when.astimezone(tz)
    return local.strftime("%Y-%m-%d %H:%M") if with_date else local.strftime("%H:%M")


def render_notification(
    kind: NotificationKind,
    location_name: str,
    temperature: float | None,
    event_time: datetime | None,
    threshold: float,
    tz: tzinfo,
) -> str:
    if kind == NotificationKind.WARNING:
        return (
            f"⚠️ Freezing alert! {location_name} is expected to drop to "
            f"{threshold:.1f}°C or below.\n\n"
            f"Expected temperature: {_fmt_temp(temperature)}\n"
            f"Expected time: {_fmt_time(event_time, tz)}"
        )
    if kind == NotificationKind.NOW_FREEZING:
        return (
            f"❄️ It's now freezing at {location_name}!\n\n"
            f"Current temperature: {_fmt_temp(temperature)}\n"
            "Protect your plants from frost damage!"
        )
    if kind == NotificationKind.ALL_CLEAR:
        return (
            f"✅ All clear for {location_name}!\n\n"
            f"Temperatures are expected to stay above {threshold:.1f}°C "
            "for the rest of the forecast.\n"
            f"Current temperature: {_fmt_temp(temperature)}"
        )
    return f"Weather alert for {location_name}"


def render_morning_summary(summary: MorningSummary, tz: tzinfo) -> str:
    lines = [
        "🌡️ Morning Frost Alert ☕",
        "",
        "The following locations may experience freezing temperatures today:",
        "",
    ]
    for e in summary.entries:
        lines.append(
            f"- {e.name}: {_fmt_temp(e.temperature)} at "
            f"{_fmt_time(e.event_time, tz, with_date=False)}"
        )
    lines.append("")
    lines.append("Please take necessary precautions to protect your plants!")
    return "\n".join(lines)
