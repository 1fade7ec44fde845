"""
Source adapter for the webhook-batch automation backend.

The automation backend wraps everything in arrays of `{"output": {...}}`
objects. This module flattens those wrappers into the canonical model.
Design Pattern: Adapter. Nothing here raises: malformed payloads are logged and
degrade to an empty result.
"""
from __future__ import annotations

import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from signalfeed.core.decode import Decoder, ParseResult, Shape, decode_first
from signalfeed.core.normalize import (
    HtmlUpcoming,
    NormalizedNewsItem,
    NormalizedStrategy,
    NormalizedUpcoming,
    TextUpcoming,
    UpcomingItem,
    build_strategy,
    coalesce_text,
)
from signalfeed.services.wire import (
    AnalysisNewsItem,
    FlatNewsItem,
    RegimeEntry,
    StrategyEntry,
    StrategyWrapper,
    UpcomingEntry,
    UpcomingObject,
)

log = logging.getLogger("services.webhook_adapter")

_WRAPPER = TypeAdapter(StrategyWrapper)
_ENTRY = TypeAdapter(StrategyEntry)


def map_strategy_entry(entry: StrategyEntry) -> NormalizedStrategy:
    level = entry.entry_signal.level if entry.entry_signal else None
    timeframe = entry.entry_signal.timeframe if entry.entry_signal else None
    return build_strategy(
        entry.model_dump(exclude={"entry_signal"}),
        entry=level,
        timeframe=timeframe,
        symbol=entry.symbol,
    )


def _build_strategies(wrappers: list[Any]) -> list[NormalizedStrategy]:
    # Now, we flatten output.strategy_signals across every wrapper.
    # Each wrapper and each entry is validated on its own, so one odd element
    # never takes its neighbours down with it.
    raw_entries: list[Any] = []
    for idx, raw in enumerate(wrappers):
        if not raw:
            continue
        try:
            wrapper = _WRAPPER.validate_python(raw)
        except ValidationError as e:
            log.warning("Skipping strategy wrapper %d: %s", idx, e.errors()[0]["msg"])
            continue
        if wrapper.output is None:
            continue
        raw_entries.extend(wrapper.output.strategy_signals or [])

    strategies = []
    for idx, raw in enumerate(raw_entries):
        if not raw:
            continue
        try:
            entry = _ENTRY.validate_python(raw)
        except ValidationError as e:
            log.warning("Skipping strategy entry %d: %s", idx, e.errors()[0]["msg"])
            continue
        strategies.append(map_strategy_entry(entry))
    return strategies


def _build_regime(entries: list[RegimeEntry | None]) -> str | None:
    first = entries[0] if entries else None
    return (first.text or None) if first is not None else None


def _build_analysis_news(items: list[AnalysisNewsItem]) -> list[NormalizedNewsItem]:
    news = []
    for idx, item in enumerate(items):
        text = coalesce_text(item.output.model_dump(), "ai_analysis_summary")
        if text:
            news.append(NormalizedNewsItem(id=f"news-{idx}", text=text))
    return news


def build_flat_news(items: list[FlatNewsItem]) -> list[NormalizedNewsItem]:
    news = []
    for idx, item in enumerate(items):
        text = coalesce_text(
            item.model_dump(), "content", "text", "summary", "ai_analysis_summary", "title"
        )
        if not text:
            continue
        item_id = str(item.id) if item.id is not None and item.id != "" else f"news-{idx}"
        news.append(NormalizedNewsItem(id=item_id, text=text))
    return news


def build_html_upcoming(items: list[UpcomingEntry | str]) -> NormalizedUpcoming | None:
    entries = []
    for idx, item in enumerate(items):
        if isinstance(item, str):
            html, item_id = item.strip(), None
        else:
            html = coalesce_text(item.model_dump(), "text", "html", "content")
            item_id = item.id
        if not html:
            continue
        entries.append(UpcomingItem(
            id=str(item_id) if item_id is not None and item_id != "" else f"upcoming-{idx}",
            html=html,
        ))
    return HtmlUpcoming(items=tuple(entries)) if entries else None


def build_text_upcoming(obj: UpcomingObject) -> NormalizedUpcoming | None:
    text = coalesce_text(obj.model_dump(), "text", "content")
    return TextUpcoming(text=text) if text else None


STRATEGY_DECODER: Decoder[list[NormalizedStrategy]] = Decoder(
    Shape.WEBHOOK_BATCH, TypeAdapter(list[Any]), _build_strategies
)
REGIME_DECODER: Decoder[str | None] = Decoder(
    Shape.WEBHOOK_BATCH, TypeAdapter(list[RegimeEntry | None]), _build_regime
)
ANALYSIS_NEWS_DECODER: Decoder[list[NormalizedNewsItem]] = Decoder(
    Shape.ANALYSIS_BATCH, TypeAdapter(list[AnalysisNewsItem]), _build_analysis_news
)
FLAT_NEWS_DECODER: Decoder[list[NormalizedNewsItem]] = Decoder(
    Shape.FLAT_LIST, TypeAdapter(list[FlatNewsItem]), build_flat_news
)
HTML_UPCOMING_DECODER: Decoder[NormalizedUpcoming | None] = Decoder(
    Shape.HTML_LIST, TypeAdapter(list[UpcomingEntry | str]), build_html_upcoming
)
TEXT_UPCOMING_DECODER: Decoder[NormalizedUpcoming | None] = Decoder(
    Shape.SINGLE_TEXT, TypeAdapter(UpcomingObject), build_text_upcoming
)


def decode_strategies_payload(payload: Any) -> ParseResult[list[NormalizedStrategy]]:
    return decode_first(payload, (STRATEGY_DECODER,), [], "strategies")


def parse_strategies_payload(payload: Any) -> list[NormalizedStrategy]:
    """Flatten a webhook batch into strategies. Returns [] on malformed input."""
    return decode_strategies_payload(payload).value


def parse_regime_text(payload: Any) -> str | None:
    return decode_first(payload, (REGIME_DECODER,), None, "regime").value


def parse_current_news(payload: Any) -> list[NormalizedNewsItem]:
    """Analysis-batch news first, then the flat item list."""
    return decode_first(
        payload, (ANALYSIS_NEWS_DECODER, FLAT_NEWS_DECODER), [], "current news"
    ).value


def parse_upcoming(payload: Any) -> NormalizedUpcoming | None:
    return decode_first(
        payload, (HTML_UPCOMING_DECODER, TEXT_UPCOMING_DECODER), None, "upcoming"
    ).value
