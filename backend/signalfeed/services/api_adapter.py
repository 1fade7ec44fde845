"""
Source adapter for the REST API backend.

The API returns flat snake_case objects, one signal per request. Field names
drifted over time, so every field is coalesced across its known aliases
(`entry_level` or `entry`, `take_profit` or `tp`, `pair` or `symbol`, ...).
"""
from __future__ import annotations

import logging
from typing import Any

from pydantic import TypeAdapter

from signalfeed.core.decode import Decoder, ParseResult, Shape, decode_first
from signalfeed.core.normalize import (
    NormalizedNewsItem,
    NormalizedStrategy,
    NormalizedUpcoming,
    build_strategy,
    coalesce,
    coalesce_text,
)
from signalfeed.services.webhook_adapter import (
    FLAT_NEWS_DECODER,
    HTML_UPCOMING_DECODER,
    TEXT_UPCOMING_DECODER,
)
from signalfeed.services.wire import RestRegime, RestSignal

log = logging.getLogger("services.api_adapter")

# Now, we label signals that arrive without a confidence.
# The percent stays absent so consumers never see a made-up number.
DEFAULT_CONFIDENCE_TEXT = "Medium"


def map_signal(signal: RestSignal) -> NormalizedStrategy:
    values = signal.model_dump()
    return build_strategy(
        values,
        entry=coalesce(values, "entry_level", "entry"),
        timeframe=signal.timeframe,
        symbol=coalesce(values, "pair", "symbol"),
        default_confidence_text=DEFAULT_CONFIDENCE_TEXT,
    )


def _build_regime_object(obj: RestRegime) -> str | None:
    return coalesce_text(obj.model_dump(), "regime_text", "text", "description") or None


def _build_regime_text(text: str) -> str | None:
    return text or None


SIGNAL_DECODER: Decoder[NormalizedStrategy | None] = Decoder(
    Shape.REST, TypeAdapter(RestSignal), map_signal
)
# Now, we try the bare string first: some deployments return the regime as plain text.
PLAIN_REGIME_DECODER: Decoder[str | None] = Decoder(
    Shape.PLAIN_TEXT, TypeAdapter(str), _build_regime_text
)
REGIME_OBJECT_DECODER: Decoder[str | None] = Decoder(
    Shape.REST, TypeAdapter(RestRegime), _build_regime_object
)


def decode_signal(payload: Any) -> ParseResult[NormalizedStrategy | None]:
    return decode_first(payload, (SIGNAL_DECODER,), None, "signal")


def parse_signal(payload: Any) -> NormalizedStrategy | None:
    """
    Map one REST signal object to a strategy.

    Returns None (not an empty list) for a falsy or unrecognized payload: the
    API models at most one active signal per request.
    """
    return decode_signal(payload).value


def parse_regime(payload: Any) -> str | None:
    return decode_first(
        payload, (PLAIN_REGIME_DECODER, REGIME_OBJECT_DECODER), None, "regime"
    ).value


def parse_current_news(payload: Any) -> list[NormalizedNewsItem]:
    return decode_first(payload, (FLAT_NEWS_DECODER,), [], "current news").value


def parse_upcoming(payload: Any) -> NormalizedUpcoming | None:
    return decode_first(
        payload, (HTML_UPCOMING_DECODER, TEXT_UPCOMING_DECODER), None, "upcoming"
    ).value
