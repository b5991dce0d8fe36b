"""Deterministic string hashing for colour assignment."""

from __future__ import annotations

from typing import Sequence

_UINT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def string_hash32(payload: str) -> int:
    """Signed 32-bit polynomial (base 31) hash over the code points of *payload*.

    Equivalent to the classic ``hash = hash * 31 + code`` loop with
    two's-complement wrap-around, so values match colours assigned by
    earlier browser-side versions of the grouping logic for ASCII input.

    Args:
        payload: Arbitrary string (typically a registrable domain).

    Returns:
        An integer in ``[-2**31, 2**31)``.
    """
    h = 0
    for ch in payload:
        h = (h * 31 + ord(ch)) & _UINT32_MASK
    if h & _INT32_SIGN:
        h -= _UINT32_MASK + 1
    return h


def pick_by_hash(payload: str, choices: Sequence[str]) -> str:
    """Pick one of *choices* deterministically from *payload*.

    Args:
        payload: String to hash.
        choices: Non-empty sequence to pick from.

    Returns:
        ``choices[abs(string_hash32(payload)) % len(choices)]``.
    """
    return choices[abs(string_hash32(payload)) % len(choices)]
