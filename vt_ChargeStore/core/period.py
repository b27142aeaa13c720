# vt_ChargeStore/core/period.py
from __future__ import annotations
from dataclasses import dataclass
import pandas as pd


@dataclass(frozen=True)
class Period:
    """
    Interval over charge start times (ms since epoch).

    Half-open ``[start, end)`` by default; ``closed=True`` also admits ``end``.
    Either bound may be None for an unbounded side.
    """
    start: int | None = None
    end: int | None = None
    closed: bool = False

    def __post_init__(self):
        if self.start is not None and self.end is not None and self.end < self.start:
            raise ValueError(f"period end {self.end} is before start {self.start}")

    def contains(self, t: int) -> bool:
        if self.start is not None and t < self.start:
            return False
        if self.end is not None:
            return t <= self.end if self.closed else t < self.end
        return True


_FALLBACK_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d", "%d.%m.%Y %H:%M:%S", "%d.%m.%Y",
                     "%m/%d/%y %H:%M:%S", "%m/%d/%y")


def to_epoch_ms(text: str, tz: str | None = None) -> int:
    """Parse a user-entered date/time into ms since epoch (``tz`` = local zone of the text)."""
    ts = pd.to_datetime(text, errors="coerce")
    if pd.isna(ts):
        for fmt in _FALLBACK_FORMATS:
            ts = pd.to_datetime(text, format=fmt, errors="coerce")
            if not pd.isna(ts):
                break
    if pd.isna(ts):
        raise ValueError(f"cannot parse date/time: {text!r}")
    if ts.tzinfo is None:
        try:
            ts = ts.tz_localize(tz or "UTC")
        except KeyError as e:
            # pytz / zoneinfo report unknown zones as KeyError subclasses
            raise ValueError(f"unknown time zone: {tz!r}") from e
    return int(ts.value // 1_000_000)


def period_from_strings(start: str | None, end: str | None, tz: str | None = None,
                        closed: bool = False) -> Period | None:
    """Build a Period from optional text bounds; None when both are empty."""
    if not start and not end:
        return None
    return Period(
        start=to_epoch_ms(start, tz) if start else None,
        end=to_epoch_ms(end, tz) if end else None,
        closed=closed,
    )
