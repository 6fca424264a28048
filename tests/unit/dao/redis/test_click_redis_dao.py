"""Unit tests for the ClickRedisDAO

Test coverage includes:

1. Recording behavior
   - Validates XADD and HINCRBY run in a single MULTI/EXEC transaction.
   - Ensures the returned event carries the stream entry id.
   - Confirms clicks on missing links raise LinkRecordNotFoundError.
   - Confirms Redis connection errors raise DataStoreError.

2. Reading behavior
   - Ensures stream entries deserialize into ClickEventModel in ingestion order.
   - Validates time range filtering on ingestion time.
   - Ensures count() reads the stream length.
"""

from datetime import datetime, UTC

import pytest
import redis
from beartype.roar import BeartypeCallHintParamViolation

from clickshortener.models import ClickEventModel, TimeRange
from clickshortener.dao.exceptions import DataStoreError, LinkRecordNotFoundError
from clickshortener.dao.redis import ClickRedisDAO


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture
def dao(redis_client, app_prefix):
    """Create a ClickRedisDAO instance with a mocked Redis client."""
    return ClickRedisDAO(redis_client=redis_client, prefix=app_prefix)


@pytest.fixture
def event():
    return ClickEventModel(
        link_id='link-1',
        occurred_at=datetime(2025, 10, 15, 12, 30, tzinfo=UTC),
        device_class='Mobile',
        browser='Safari',
        os='iOS',
        country='BG',
        city=None,
        referrer='https://news.example.com/',
        visitor_id='3f1c9b5e2a7d0c44',
    )


def stream_entry(entry_id: str, created_at: str, **fields) -> tuple[str, dict[str, str]]:
    return entry_id, {
        'created_at': created_at,
        'device': fields.get('device', 'Desktop'),
        'browser': fields.get('browser', 'Firefox'),
        'os': fields.get('os', 'Linux'),
        'country': fields.get('country', ''),
        'city': fields.get('city', ''),
        'referrer': fields.get('referrer', 'Direct'),
        'visitor': fields.get('visitor', ''),
    }


# -------------------------------
# 1. Recording behavior
# -------------------------------


def test_record_click(dao, redis_client, event):
    """Ensure the event append and counter increment share one transaction."""
    redis_client.exists.return_value = 1
    redis_client.execute.return_value = ['1760531400000-0', 8]

    stored = dao.record(event)

    redis_client.exists.assert_called_once_with('testapp:test:links:link-1')
    redis_client.pipeline.assert_called_once_with(transaction=True)
    redis_client.xadd.assert_called_once_with(
        'testapp:test:links:link-1:clicks',
        {
            'created_at': '2025-10-15T12:30:00+00:00',
            'device': 'Mobile',
            'browser': 'Safari',
            'os': 'iOS',
            'country': 'BG',
            'city': '',
            'referrer': 'https://news.example.com/',
            'visitor': '3f1c9b5e2a7d0c44',
        },
    )
    redis_client.hincrby.assert_called_once_with('testapp:test:links:link-1', 'click_count', 1)
    redis_client.get.assert_not_called()  # never read-modify-write
    assert stored.id == '1760531400000-0'
    assert stored.link_id == event.link_id


def test_record_click_for_missing_link(dao, redis_client, event):
    """Ensure clicks on unknown links are rejected before writing."""
    redis_client.exists.return_value = 0

    with pytest.raises(LinkRecordNotFoundError, match="Link with id 'link-1' not found."):
        dao.record(event)
    redis_client.xadd.assert_not_called()
    redis_client.hincrby.assert_not_called()


def test_record_click_with_redis_connection_error(dao, redis_client, event):
    """Ensure Redis connection errors during record raise DataStoreError."""
    redis_client.exists.return_value = 1
    redis_client.execute.side_effect = redis.exceptions.ConnectionError('Connection error')

    with pytest.raises(DataStoreError):
        dao.record(event)


def test_record_click_with_invalid_type(dao):
    """Ensure invalid event types raise TypeError or Beartype error."""
    with pytest.raises((TypeError, BeartypeCallHintParamViolation)):
        dao.record({'link_id': 'link-1'})


# -------------------------------
# 2. Reading behavior
# -------------------------------


def test_events(dao, redis_client):
    """Ensure stream entries come back as events in ingestion order."""
    redis_client.xrange.return_value = [
        stream_entry('1-0', '2025-10-15T10:00:00+00:00', country='DE', city='Berlin', visitor='v1'),
        stream_entry('2-0', '2025-10-15T11:00:00+00:00', device='Unknown', browser='Unknown', os='Unknown'),
    ]

    events = dao.events('link-1')

    redis_client.xrange.assert_called_once_with('testapp:test:links:link-1:clicks', '-', '+')
    assert [e.id for e in events] == ['1-0', '2-0']
    assert events[0] == ClickEventModel(
        id='1-0',
        link_id='link-1',
        occurred_at=datetime(2025, 10, 15, 10, tzinfo=UTC),
        device_class='Desktop',
        browser='Firefox',
        os='Linux',
        country='DE',
        city='Berlin',
        referrer='Direct',
        visitor_id='v1',
    )
    assert events[1].country is None
    assert events[1].visitor_id is None


def test_events_within_time_range(dao, redis_client):
    """Ensure the half-open time range filters on ingestion time."""
    redis_client.xrange.return_value = [
        stream_entry('1-0', '2025-10-15T10:00:00+00:00'),
        stream_entry('2-0', '2025-10-15T11:00:00+00:00'),
        stream_entry('3-0', '2025-10-15T12:00:00+00:00'),
    ]
    time_range = TimeRange(
        start=datetime(2025, 10, 15, 11, tzinfo=UTC),
        end=datetime(2025, 10, 15, 12, tzinfo=UTC),
    )

    events = dao.events('link-1', time_range=time_range)

    assert [e.id for e in events] == ['2-0']


def test_events_of_link_without_clicks(dao, redis_client):
    redis_client.xrange.return_value = []
    assert dao.events('link-1') == []


def test_count(dao, redis_client):
    """Ensure count() reads the stream length."""
    redis_client.xlen.return_value = 42

    assert dao.count('link-1') == 42
    redis_client.xlen.assert_called_once_with('testapp:test:links:link-1:clicks')
