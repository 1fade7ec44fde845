"""
Tagged-union payload decoding.

Concept: each logical upstream payload (strategies, regime, news, upcoming) can
arrive in more than one wire shape. Instead of probing fields ad hoc, every
known shape is described by a pydantic schema plus a builder, and the decoders
are tried in a fixed priority order. The outcome is always a ParseResult that
says which shape was recognized, so "no data" and "could not decode" stay
distinguishable. Supporting a new upstream shape means adding one Decoder.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Sequence, TypeVar

from pydantic import TypeAdapter

log = logging.getLogger("core.decode")

T = TypeVar("T")


class Shape(str, Enum):
    EMPTY = "empty"
    WEBHOOK_BATCH = "webhook_batch"
    REST = "rest"
    ANALYSIS_BATCH = "analysis_batch"
    FLAT_LIST = "flat_list"
    HTML_LIST = "html_list"
    SINGLE_TEXT = "single_text"
    PLAIN_TEXT = "plain_text"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    value: T
    shape: Shape
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True when the payload was decoded, even if it decoded to nothing."""
        return self.shape is not Shape.UNRECOGNIZED

    @property
    def empty(self) -> bool:
        return self.shape is Shape.EMPTY


@dataclass(frozen=True)
class Decoder(Generic[T]):
    shape: Shape
    schema: TypeAdapter
    build: Callable[[Any], T]


def decode_first(
    payload: Any,
    decoders: Sequence[Decoder[T]],
    default: T,
    what: str,
) -> ParseResult[T]:
    """
    Run `payload` through `decoders` in order and return the first success.

    Never raises. A falsy payload is EMPTY; a payload no decoder accepts is
    UNRECOGNIZED and carries `default` as its value.
    """
    if not payload:
        return ParseResult(default, Shape.EMPTY)

    errors: list[str] = []
    for decoder in decoders:
        try:
            wire = decoder.schema.validate_python(payload)
            value = decoder.build(wire)
        except Exception as e:
            # A schema mismatch or a builder failure both mean "not this shape".
            errors.append(f"{decoder.shape.value}: {e}")
            continue
        return ParseResult(value, decoder.shape)

    log.warning("Failed to parse %s payload (%s)", what, type(payload).__name__)
    return ParseResult(default, Shape.UNRECOGNIZED, error="; ".join(errors) or "no decoder")
