"""
Pydantic schemas for the upstream wire shapes.

These describe what the automation backend and the REST API send us. They are
deliberately permissive (everything optional, unknown keys ignored) because the
upstream payloads evolve; a payload that still fails validation is simply not
that shape.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SignalFields(WireModel):
    """Fields shared by both strategy shapes, under every alias seen upstream."""
    strategy_name: str | None = None
    direction: str | None = None
    take_profit: float | None = None
    tp: float | None = None
    take_profit_2: float | None = None
    tp2: float | None = None
    stop_loss: float | None = None
    sl: float | None = None
    confidence: str | float | None = None
    confidence_percent: float | None = None
    risk_reward_ratio: float | None = None
    rr: float | None = None
    timestamp: str | None = None
    expiry_minutes: float | None = None
    symbol: str | None = None


# ---------------------------------------------------------------------------
# Webhook-batch shapes (automation backend)
# ---------------------------------------------------------------------------

class EntrySignal(WireModel):
    level: float | None = None
    timeframe: str | None = None


class StrategyEntry(SignalFields):
    entry_signal: EntrySignal | None = None


class StrategyOutput(WireModel):
    # Entries are validated one by one after falsy ones are dropped.
    strategy_signals: list[Any] | None = None


class StrategyWrapper(WireModel):
    output: StrategyOutput | None = None


class RegimeEntry(WireModel):
    text: str | None = None


class AnalysisOutput(WireModel):
    ai_analysis_summary: Any = None


class AnalysisNewsItem(WireModel):
    output: AnalysisOutput


# ---------------------------------------------------------------------------
# REST shapes
# ---------------------------------------------------------------------------

class RestSignal(SignalFields):
    entry_level: float | None = None
    entry: float | None = None
    timeframe: str | None = None
    pair: str | None = None


class RestRegime(WireModel):
    regime_text: Any = None
    text: Any = None
    description: Any = None


# ---------------------------------------------------------------------------
# Shapes shared by both backends
# ---------------------------------------------------------------------------

class FlatNewsItem(WireModel):
    id: str | int | None = None
    content: Any = None
    text: Any = None
    summary: Any = None
    ai_analysis_summary: Any = None
    title: Any = None


class UpcomingEntry(WireModel):
    id: str | int | None = None
    text: Any = None
    html: Any = None
    content: Any = None


class UpcomingObject(WireModel):
    text: Any = None
    content: Any = None
