from __future__ import annotations

import json
import math

from tradeFeed.struct.Trade import Trade

_NUMBER_FIELDS = ("price", "volume")


class MalformedTradeError(ValueError):
    """A data line could not be decoded into a Trade."""

    def __init__(self, line: bytes, reason: str) -> None:
        self.line = line
        self.reason = reason
        preview = line[:120].decode("utf-8", errors="replace").rstrip("\n")
        super().__init__(f"malformed trade ({reason}): {preview}")


def _reject_constant(name: str):
    raise ValueError(f"non-standard constant {name}")


def _is_number(value) -> bool:
    # bool is an int subclass but never a valid price or volume
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def decode_trade(line: bytes) -> Trade:
    """Decode one JSON trade record.

    The record must be an object carrying an integer ``market``, finite
    numeric ``price`` and ``volume``, and a boolean ``is_buy``. Extra fields
    are ignored. ``NaN`` and ``Infinity`` literals are rejected.

    Raises:
        MalformedTradeError: If the line is not valid JSON or a required field
            is missing, has the wrong type, or is out of range.
    """
    try:
        raw = json.loads(line, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise MalformedTradeError(line, f"invalid json: {exc}") from exc

    if not isinstance(raw, dict):
        raise MalformedTradeError(line, "not a json object")

    market = raw.get("market")
    if not isinstance(market, int) or isinstance(market, bool):
        raise MalformedTradeError(line, "market must be an integer")

    for field in _NUMBER_FIELDS:
        if not _is_number(raw.get(field)):
            raise MalformedTradeError(line, f"{field} must be a number")

    if not isinstance(raw.get("is_buy"), bool):
        raise MalformedTradeError(line, "is_buy must be a boolean")

    try:
        trade = Trade.from_dict(raw)
    except OverflowError as exc:
        raise MalformedTradeError(line, f"number out of range: {exc}") from exc

    for field in _NUMBER_FIELDS:
        if not math.isfinite(getattr(trade, field)):
            raise MalformedTradeError(line, f"{field} out of range")

    return trade
