"""Shared utilities used across the ordering agent."""

import re


def digits_only(value: str) -> str:
    """Strip everything except digits.

    Examples:
        >>> digits_only("(41) 99999-8888")
        '41999998888'
        >>> digits_only("5541999998888@s.whatsapp.net")
        '5541999998888'
    """
    return re.sub(r"[^\d]", "", value or "")


def phones_match(a: str, b: str) -> bool:
    """Suffix-tolerant phone comparison in both directions.

    Historical ledger rows may carry the number with or without the
    country code, so either side ending with the other counts as a match.
    """
    left, right = digits_only(a), digits_only(b)
    if not left or not right:
        return False
    return left.endswith(right) or right.endswith(left)
