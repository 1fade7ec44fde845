"""
Shape-agnostic decoding used by the orchestrator.

Each function tries every known upstream shape in a fixed priority order, so
one orchestrator works against either backend without being told which one it
is talking to.
"""
from __future__ import annotations

from typing import Any

from signalfeed.core.decode import Decoder, ParseResult, decode_first
from signalfeed.core.normalize import NormalizedNewsItem, NormalizedStrategy, NormalizedUpcoming
from signalfeed.services import api_adapter, webhook_adapter


def _single_signal(signal: NormalizedStrategy | None) -> list[NormalizedStrategy]:
    return [signal] if signal is not None else []


# Now, we wrap the REST decoder so both strategy shapes produce a list.
_REST_STRATEGIES: Decoder[list[NormalizedStrategy]] = Decoder(
    api_adapter.SIGNAL_DECODER.shape,
    api_adapter.SIGNAL_DECODER.schema,
    lambda wire: _single_signal(api_adapter.SIGNAL_DECODER.build(wire)),
)

STRATEGY_DECODERS = (webhook_adapter.STRATEGY_DECODER, _REST_STRATEGIES)
REGIME_DECODERS = (
    api_adapter.PLAIN_REGIME_DECODER,
    webhook_adapter.REGIME_DECODER,
    api_adapter.REGIME_OBJECT_DECODER,
)
NEWS_DECODERS = (webhook_adapter.ANALYSIS_NEWS_DECODER, webhook_adapter.FLAT_NEWS_DECODER)
UPCOMING_DECODERS = (webhook_adapter.HTML_UPCOMING_DECODER, webhook_adapter.TEXT_UPCOMING_DECODER)


def decode_strategies(payload: Any) -> ParseResult[list[NormalizedStrategy]]:
    return decode_first(payload, STRATEGY_DECODERS, [], "strategies")


def decode_regime(payload: Any) -> ParseResult[str | None]:
    return decode_first(payload, REGIME_DECODERS, None, "regime")


def decode_news(payload: Any) -> ParseResult[list[NormalizedNewsItem]]:
    return decode_first(payload, NEWS_DECODERS, [], "current news")


def decode_upcoming(payload: Any) -> ParseResult[NormalizedUpcoming | None]:
    return decode_first(payload, UPCOMING_DECODERS, None, "upcoming")
