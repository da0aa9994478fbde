from __future__ import annotations

from datetime import date


def today_str(today: date | None = None) -> str:
    """Return a human readable date for prompts, e.g. ``October 19, 2026``."""

    d = today or date.today()
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def clamp_int(val: int, *, lo: int, hi: int) -> int:
    """Clamp `val` into the inclusive range [`lo`, `hi`]."""

    return max(lo, min(hi, int(val)))


def round_half_up_percent(part: int, whole: int) -> int | None:
    """Return ``part / whole`` as a whole percent, rounding halves up.

    Integer arithmetic avoids float artefacts such as 0.5 rounding to even.
    Returns None when `whole` is zero.
    """

    if whole <= 0:
        return None
    return (200 * part + whole) // (2 * whole)


__all__ = ["clamp_int", "round_half_up_percent", "today_str"]
