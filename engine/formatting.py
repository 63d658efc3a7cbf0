"""
Display helpers for network values, raw counts and active rates.
"""

import math


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def format_value(value: float) -> str:
    """1_234 -> "1.2K", 2_500_000 -> "2.5M", 3.1e9 -> "3.1B"; smaller values as rounded integers."""
    if value >= 1_000_000_000:
        return f"{value / 1_000_000_000:.1f}B"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{_round_half_up(value):,}"


def format_number(count: float) -> str:
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.0f}K"
    # at most three decimals, trailing zeros trimmed
    return f"{count:,.3f}".rstrip("0").rstrip(".")


def format_percent(rate: float) -> str:
    return f"{_round_half_up(rate * 100)}%"
