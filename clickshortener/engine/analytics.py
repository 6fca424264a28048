"""Click analytics aggregation

Summaries are recomputed from the raw click event log on every request.
Nothing is materialized, so a summary is a pure function of the events
stored at call time (and of `now`, for the trend windows).

Known approximations:
    - Percentage breakdowns are rounded half-up per category, independently.
      They may sum to 99 or 101.
    - Frequency ties (top country, referrer order) are broken by the order in
      which values were first seen in the log.
    - Unique visitors count distinct visitor fingerprints, not people.

Example:
    >>> aggregator = AnalyticsAggregator(link_dao, click_dao)
    >>> summary = aggregator.summarize('0f1e2d3c', granularity=Granularity.DAILY)
    >>> summary.device_breakdown
    {'Mobile': 67, 'Desktop': 33}
    >>> len(summary.time_series)
    7
"""

import logging
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta, UTC

from clickshortener.models import (
    ClickEventModel,
    Granularity,
    OwnerStatsModel,
    SummaryModel,
    TimeBucket,
    TimeRange,
)
from clickshortener.dao.base import LinkBaseDAO, ClickBaseDAO


logger = logging.getLogger(__name__)

BUCKETS = {
    Granularity.HOURLY: (24, timedelta(hours=1)),
    Granularity.DAILY: (7, timedelta(days=1)),
}


def frequencies(values: Iterable[str | None]) -> dict[str, int]:
    """Count non-empty values, most frequent first, ties in first-seen order."""
    return dict(Counter(value for value in values if value).most_common())


def percentages(counts: dict[str, int], total: int) -> dict[str, int]:
    """Convert counts into integer percentages of `total`, rounded half-up."""
    if total <= 0:
        return {}
    return {key: int(count * 100 / total + 0.5) for key, count in counts.items()}


def bucket_start(moment: datetime, granularity: Granularity) -> datetime:
    moment = moment.astimezone(UTC)
    if granularity is Granularity.DAILY:
        return moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return moment.replace(minute=0, second=0, microsecond=0)


def time_series(events: Iterable[ClickEventModel], granularity: Granularity, now: datetime) -> list[TimeBucket]:
    """Zero-filled click counts over the trailing window ending at the current bucket

    HOURLY yields 24 one-hour buckets, DAILY yields 7 one-day buckets, oldest first.
    Events outside the window are ignored.
    """
    size, step = BUCKETS[granularity]
    last = bucket_start(now, granularity)
    starts = [last - step * offset for offset in range(size - 1, -1, -1)]

    counts = Counter(bucket_start(event.occurred_at, granularity) for event in events)
    return [TimeBucket(start=start, count=counts.get(start, 0)) for start in starts]


class AnalyticsAggregator:
    def __init__(self, link_dao: LinkBaseDAO, click_dao: ClickBaseDAO):
        self.link_dao = link_dao
        self.click_dao = click_dao

    def summarize(
        self,
        link_id: str,
        time_range: TimeRange | None = None,
        granularity: Granularity = Granularity.HOURLY,
        now: datetime | None = None,
    ) -> SummaryModel:
        """Aggregate the click events of one link

        Args:
            link_id (str):
                Link to summarize.
            time_range (TimeRange | None):
                Restrict every statistic to events inside the range.
            granularity (Granularity):
                Trend bucket size (HOURLY: last 24 hours, DAILY: last 7 days).
            now (datetime | None):
                Reference time for the trend window and `clicks_today`.

        Raises:
            LinkRecordNotFoundError:
                If the link does not exist.
            DataStoreError:
                If the data store is unreachable.
        """
        now = now or datetime.now(UTC)
        self.link_dao.get(link_id)
        events = self.click_dao.events(link_id, time_range=time_range)
        total = len(events)

        countries = frequencies(event.country for event in events)
        today = now.astimezone(UTC).date()
        dates = Counter(event.occurred_at.astimezone(UTC).date() for event in events)

        summary = SummaryModel(
            link_id=link_id,
            total_clicks=total,
            unique_visitors=len({event.visitor_id for event in events if event.visitor_id}),
            device_breakdown=percentages(frequencies(event.device_class for event in events), total),
            browser_breakdown=percentages(frequencies(event.browser for event in events), total),
            os_breakdown=percentages(frequencies(event.os for event in events), total),
            country_breakdown=countries,
            referrer_breakdown=frequencies(event.referrer for event in events),
            top_country=next(iter(countries), None),
            unique_countries=len(countries),
            unique_cities=len({event.city for event in events if event.city}),
            granularity=granularity,
            time_series=time_series(events, granularity, now),
            clicks_by_date={day.isoformat(): dates[day] for day in sorted(dates)},
            clicks_today=dates.get(today, 0),
            last_clicked_at=max((event.occurred_at for event in events), default=None),
        )
        logger.debug('Summarized %s click events.', total, extra={'linkId': link_id, 'granularity': str(granularity)})
        return summary

    def owner_stats(self, owner_id: str, now: datetime | None = None) -> OwnerStatsModel:
        """Dashboard totals over the owner's live links"""
        now = now or datetime.now(UTC)
        links = self.link_dao.list_by_owner(owner_id)
        total_clicks = sum(link.click_count for link in links)

        return OwnerStatsModel(
            owner_id=owner_id,
            total_links=len(links),
            total_clicks=total_clicks,
            active_links=sum(1 for link in links if link.active and not link.is_expired(now)),
            avg_clicks=int(total_clicks / len(links) + 0.5) if links else 0,
        )
