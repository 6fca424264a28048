from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import StrEnum
from typing import Any


class Granularity(StrEnum):
    """Time bucket granularity for click trends.

    HOURLY: 24 one-hour buckets ending at the current hour.
    DAILY: 7 one-day buckets ending today.
    """

    HOURLY = 'hour'
    DAILY = 'day'


@dataclass(frozen=True)
class TimeRange:
    """Half-open [start, end) window over click event timestamps. Either bound may be open."""

    start: datetime | None = None
    end: datetime | None = None

    def __contains__(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment >= self.end:
            return False
        return True


@dataclass(frozen=True)
class TimeBucket:
    start: datetime
    count: int


# fmt: off
@dataclass(frozen=True)
class SummaryModel:
    link_id: str
    total_clicks: int = 0
    unique_visitors: int = 0                                             # Approximation (visitor fingerprints)
    device_breakdown: dict[str, int] = field(default_factory=dict)      # category -> rounded percentage
    browser_breakdown: dict[str, int] = field(default_factory=dict)
    os_breakdown: dict[str, int] = field(default_factory=dict)
    country_breakdown: dict[str, int] = field(default_factory=dict)     # country -> clicks
    referrer_breakdown: dict[str, int] = field(default_factory=dict)    # referrer -> clicks
    top_country: str | None = None
    unique_countries: int = 0
    unique_cities: int = 0
    granularity: Granularity = Granularity.HOURLY
    time_series: list[TimeBucket] = field(default_factory=list)
    clicks_by_date: dict[str, int] = field(default_factory=dict)        # YYYY-MM-DD -> clicks
    clicks_today: int = 0
    last_clicked_at: datetime | None = None
# fmt: on

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation (datetimes as ISO 8601 strings)."""
        data = asdict(self)
        data['granularity'] = str(self.granularity)
        data['time_series'] = [{'start': b.start.isoformat(), 'count': b.count} for b in self.time_series]
        data['last_clicked_at'] = self.last_clicked_at.isoformat() if self.last_clicked_at else None
        return data


@dataclass(frozen=True)
class OwnerStatsModel:
    """Dashboard totals across all live links of one owner."""

    owner_id: str
    total_links: int = 0
    total_clicks: int = 0
    active_links: int = 0
    avg_clicks: int = 0
