"""Shared formatting helpers for the dashboard package."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ..review_queue import format_duration_short


def format_age(dt: datetime | None, now: datetime | None = None) -> str:
    """Format a timestamp as a compact age like '2h', '15m'."""
    if dt is None:
        return ""
    now = now or datetime.now(timezone.utc)
    secs = (now - dt).total_seconds()
    if secs < 0:
        return "now"
    if secs < 60:
        return f"{int(secs)}s"
    if secs < 3600:
        return f"{int(secs // 60)}m"
    if secs < 86400:
        return f"{int(secs // 3600)}h"
    return f"{int(secs // 86400)}d"


def format_timestamp(dt: datetime | None, fmt: str = "%Y-%m-%d %H:%M") -> str:
    if dt is None:
        return "-"
    return dt.astimezone().strftime(fmt)


def format_duration(delta: timedelta | None) -> str:
    """Duration for metrics tables; '-' when there is no data."""
    if not delta:
        return "-"
    return format_duration_short(delta)


def truncate(text: str, width: int) -> str:
    if width <= 1 or len(text) <= width:
        return text
    return text[: width - 1] + "…"


def progress_bar(fraction: float, width: int = 30) -> str:
    filled = int(round(max(0.0, min(1.0, fraction)) * width))
    return "█" * filled + "░" * (width - filled)
