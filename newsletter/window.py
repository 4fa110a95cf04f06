from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union


@dataclass(frozen=True)
class DateWindow:
    """
    Closed calendar-month interval covered by a roundup.

    Invariants:
      - start is the first day of a month, end is the last day of that month
      - start_str/end_str are zero-padded YYYY-MM-DD so they sort lexically
    """
    start: date
    end: date
    label: str  # e.g., "January 2023"

    @property
    def start_str(self) -> str:
        return self.start.isoformat()

    @property
    def end_str(self) -> str:
        return self.end.isoformat()

    def contains(self, timestamp: Optional[str]) -> bool:
        """
        True when the timestamp's date falls inside the window.

        API timestamps look like "2023-01-31T18:02:11Z"; only the leading
        YYYY-MM-DD is compared so the last day of the month is included.
        """
        if not timestamp:
            return False
        return self.start_str <= timestamp[:10] <= self.end_str


def parse_instant(text: str) -> datetime:
    """
    Parse an ISO date or datetime string (e.g., "2023-02-01", "2023-02-01T10:00:00Z").

    Naive values are treated as UTC.

    Raises:
        ValueError: If text is not an ISO date/datetime
    """
    raw = text.strip()
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"Invalid date override '{text}': expected ISO format like 2023-02-01") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_window(now: Optional[Union[datetime, date]] = None) -> DateWindow:
    """
    Compute the calendar month immediately preceding `now`.

    Args:
        now: Reference instant. Default: current UTC time

    Returns:
        DateWindow spanning the first through last day of the previous month
    """
    if now is None:
        now = datetime.now(timezone.utc)
    day = now.date() if isinstance(now, datetime) else now

    # Step back from the 1st of the current month; this crosses year boundaries for free
    end = day.replace(day=1) - timedelta(days=1)
    start = end.replace(day=1)

    return DateWindow(start=start, end=end, label=start.strftime("%B %Y"))
