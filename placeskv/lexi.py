"""Fixed-width numeric encodings where larger values sort first.

Every key component that carries a number we want to read "biggest first"
(frecency, visit time) goes through ``invert_and_pad``: the value is
subtracted from a known maximum and zero-padded, so a forward scan over the
store returns the largest values before the smaller ones.

Values outside ``[0, maximum]`` are rejected with ``OutOfRangeError``; what
to do about them (skip, clamp) is the caller's call.
"""

from __future__ import annotations

from .errors import OutOfRangeError

DISAMBIGUATOR_SEP = "-"


def digits_for(maximum: int) -> int:
    return len(str(int(maximum)))


def invert_and_pad(value: int, maximum: int, digits: int) -> str:
    value = int(value)
    if value < 0 or value > maximum:
        raise OutOfRangeError(f"value {value} outside [0, {maximum}]")
    if digits < digits_for(maximum):
        raise OutOfRangeError(f"{digits} digits cannot hold maximum {maximum}")
    return str(maximum - value).zfill(digits)


def pad(value: int, digits: int) -> str:
    """Zero-pad a non-negative integer so it sorts numerically as text."""
    value = int(value)
    if value < 0 or len(str(value)) > digits:
        raise OutOfRangeError(f"value {value} does not fit in {digits} digits")
    return str(value).zfill(digits)


def decode_inverted(text: str, maximum: int) -> int:
    return int(maximum) - int(text)


def lexiform_timestamp(ts: int, floor: int, ceiling: int) -> str:
    """Encode a PRTime timestamp so newer times sort first.

    The timestamp is offset against ``floor`` and inverted inside the
    ``[floor, ceiling]`` window; anything outside the window raises.
    """
    ts = int(ts)
    if ts < floor or ts > ceiling:
        raise OutOfRangeError(f"timestamp {ts} outside [{floor}, {ceiling}]")
    span = ceiling - floor
    return invert_and_pad(ts - floor, span, digits_for(span))


def decode_timestamp(text: str, floor: int, ceiling: int) -> int:
    base = text.split(DISAMBIGUATOR_SEP, 1)[0]
    return floor + decode_inverted(base, ceiling - floor)


def with_disambiguator(key: str, n: int) -> str:
    return f"{key}{DISAMBIGUATOR_SEP}{int(n):06d}"
