"""
Pydantic schemas for the SignalFeed API.
Defines the serialization rules for the feed state handed to the dashboard.
"""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from signalfeed.core.orchestrator import OrchestratorState


class StrategyOut(BaseModel):
    """
    Schema for returning a normalized strategy.
    This acts as a Data Transfer Object (DTO).
    It decouples the internal dataclasses from the external API Contract.
    """
    strategy_name: str
    direction: Literal["BUY", "SELL"]
    entry: float
    status: Literal["Active", "Expired"]
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


class NewsItemOut(BaseModel):
    id: str
    text: str


class UpcomingItemOut(BaseModel):
    id: str
    html: str


class TextUpcomingOut(BaseModel):
    mode: Literal["text"]
    text: str


class HtmlUpcomingOut(BaseModel):
    mode: Literal["html"]
    items: list[UpcomingItemOut]


UpcomingOut = Annotated[Union[TextUpcomingOut, HtmlUpcomingOut], Field(discriminator="mode")]


class FeedStateOut(BaseModel):
    """
    Schema for the orchestrator snapshot.
    """
    pair: str
    strategies: list[StrategyOut]
    regime_text: str | None
    current_news: list[NewsItemOut]
    upcoming: UpcomingOut | None
    loading: bool
    error: str | None
    last_updated: datetime | None

    @classmethod
    def from_state(cls, pair: str, state: OrchestratorState) -> "FeedStateOut":
        return cls.model_validate({"pair": pair, **asdict(state)})


class HealthOut(BaseModel):
    ok: bool
    upstream: bool
