"""
Normalization Core.

Canonical Data Model plus the derivation rules shared by every source adapter.
Regardless of whether a signal comes from the webhook automation backend or the
REST API, it is converted into these structures before the orchestrator sees it.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Literal, Mapping

log = logging.getLogger("core.normalize")

Direction = Literal["BUY", "SELL"]
Status = Literal["Active", "Expired"]

BUY: Direction = "BUY"
SELL: Direction = "SELL"
ACTIVE: Status = "Active"
EXPIRED: Status = "Expired"

UNKNOWN_STRATEGY = "Unknown Strategy"

# Now, we fix the confidence keyword table.
# Order matters: the first keyword found in the text wins.
CONFIDENCE_KEYWORDS: tuple[tuple[str, float], ...] = (
    ("high", 85.0),
    ("medium", 65.0),
    ("low", 40.0),
)
_PERCENT_RE = re.compile(r"(\d+)%?")


@dataclass(frozen=True)
class NormalizedStrategy:
    """
    Canonical strategy signal.
    `entry` is always a finite number because consumers format it unconditionally.
    """
    strategy_name: str
    direction: Direction
    entry: float
    status: Status
    symbol: str
    take_profit: float | None = None
    take_profit_2: float | None = None
    stop_loss: float | None = None
    timeframe: str | None = None
    confidence_text: str | None = None
    confidence_percent: float | None = None
    risk_reward: float | None = None
    timestamp: str | None = None
    expiry_minutes: float | None = None


@dataclass(frozen=True)
class NormalizedNewsItem:
    id: str
    text: str


@dataclass(frozen=True)
class UpcomingItem:
    id: str
    html: str


@dataclass(frozen=True)
class TextUpcoming:
    """Single freeform advisory."""
    text: str
    mode: Literal["text"] = "text"


@dataclass(frozen=True)
class HtmlUpcoming:
    """List of richer upcoming-news entries."""
    items: tuple[UpcomingItem, ...] = field(default_factory=tuple)
    mode: Literal["html"] = "html"


NormalizedUpcoming = TextUpcoming | HtmlUpcoming


def map_direction(value: Any) -> Direction:
    """
    Map an upstream direction onto BUY/SELL.

    Only "long" (any case) is BUY. Every other value, including "short",
    empty strings and garbage, is SELL.
    """
    if isinstance(value, str) and value.strip().lower() == "long":
        return BUY
    return SELL


def confidence_to_percent(text: Any, percent: float | None = None) -> float | None:
    """
    Derive a confidence percentage.

    A numeric percent supplied upstream always wins. Otherwise the text is
    searched for a keyword, then for a number like "72%". Returns None when
    nothing matches; absence is never reported as 0.
    """
    if percent is not None:
        return float(percent)
    if not text or not isinstance(text, str):
        return None

    lowered = text.lower()
    for keyword, value in CONFIDENCE_KEYWORDS:
        if keyword in lowered:
            return value

    match = _PERCENT_RE.search(text)
    if match:
        return float(match.group(1))
    return None


def _parse_timestamp(timestamp: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(timestamp.strip().replace("Z", "+00:00"))
    except ValueError:
        log.warning("Unparseable signal timestamp %r, treating signal as active", timestamp)
        return None
    # Now, we pin naive timestamps to UTC so they compare against an aware clock.
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def compute_status(
    timestamp: str | None,
    expiry_minutes: float | None,
    now: datetime | None = None,
) -> Status:
    """
    Active while now <= timestamp + expiry_minutes.

    Missing data never produces Expired: a missing timestamp, a missing or zero
    expiry, or an unparseable timestamp all yield Active.
    """
    if not timestamp or not expiry_minutes:
        return ACTIVE

    started = _parse_timestamp(timestamp)
    if started is None:
        return ACTIVE

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    minutes = float(expiry_minutes)
    if math.isnan(minutes):
        return ACTIVE
    try:
        expires = started + timedelta(minutes=minutes)
    except OverflowError:
        # Now, we settle expiries beyond the datetime range by their sign.
        return ACTIVE if minutes > 0 else EXPIRED
    return ACTIVE if now <= expires else EXPIRED


def coalesce(source: Mapping[str, Any], *names: str) -> Any:
    """Return the first named value that is present and not None. 0 counts as present."""
    for name in names:
        value = source.get(name)
        if value is not None:
            return value
    return None


def coalesce_text(source: Mapping[str, Any], *names: str) -> str:
    """Return the first named value that is a non-blank string, stripped; "" if none."""
    for name in names:
        value = source.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def finite_or_zero(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def build_strategy(
    values: Mapping[str, Any],
    *,
    entry: Any,
    timeframe: str | None,
    symbol: str | None,
    default_confidence_text: str | None = None,
    now: datetime | None = None,
) -> NormalizedStrategy:
    """
    Apply the shared mapping rules to one flattened upstream signal.

    `values` holds the upstream fields by their wire names. Price targets are
    coalesced across their alternate names (`take_profit` or `tp`, ...). Entry,
    timeframe and symbol are resolved by the caller because their location
    differs between wire shapes.
    """
    confidence = values.get("confidence")
    percent = values.get("confidence_percent")
    # Now, we split a numeric confidence into the percent slot.
    # Some upstream flows send 72 instead of "72%".
    if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
        percent = confidence if percent is None else percent
        confidence = None

    timestamp = values.get("timestamp")
    expiry_minutes = values.get("expiry_minutes")

    return NormalizedStrategy(
        strategy_name=values.get("strategy_name") or UNKNOWN_STRATEGY,
        direction=map_direction(values.get("direction")),
        entry=finite_or_zero(entry),
        take_profit=coalesce(values, "take_profit", "tp"),
        take_profit_2=coalesce(values, "take_profit_2", "tp2"),
        stop_loss=coalesce(values, "stop_loss", "sl"),
        timeframe=timeframe,
        confidence_text=confidence or default_confidence_text,
        confidence_percent=confidence_to_percent(confidence, percent),
        risk_reward=coalesce(values, "risk_reward_ratio", "rr"),
        status=compute_status(timestamp, expiry_minutes, now=now),
        timestamp=timestamp,
        expiry_minutes=expiry_minutes,
        symbol=symbol or "",
    )
