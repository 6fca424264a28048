"""Data Access Object (DAO) implementation for click events in Redis

Click events live in one Redis Stream per link (`links:<id>:clicks`).
Appending an event (XADD) and advancing the link's `click_count` (HINCRBY)
run inside a single MULTI/EXEC block, so the counter always equals the
stream length no matter how many recorders run concurrently.

Classes:
    ClickRedisDAO:
        DAO for recording and reading ClickEventModel in a Redis datastore.

Example:
    >>> from datetime import datetime, UTC
    >>> from clickshortener.dao.redis import ClickRedisDAO
    >>> from clickshortener.models import ClickEventModel

    >>> dao = ClickRedisDAO(prefix="app:dev")
    >>> dao.record(ClickEventModel(link_id='0f1e2d3c', occurred_at=datetime.now(UTC), browser='Firefox'))
    ClickEventModel(link_id='0f1e2d3c', ..., id='1760000000000-0')
    >>> dao.count('0f1e2d3c')
    1
"""

from dataclasses import replace
from datetime import datetime

from beartype import beartype

from clickshortener.models import ClickEventModel, TimeRange
from clickshortener.dao.base import ClickBaseDAO
from clickshortener.dao.redis.mixins import RedisClientMixin
from clickshortener.dao.redis.helpers import handle_redis_connection_error
from clickshortener.dao.exceptions import LinkRecordNotFoundError
from clickshortener.utils.constants import UNKNOWN, DIRECT_REFERRER


def _to_fields(event: ClickEventModel) -> dict[str, str]:
    return {
        'created_at': event.occurred_at.isoformat(),
        'device': event.device_class,
        'browser': event.browser,
        'os': event.os,
        'country': event.country or '',
        'city': event.city or '',
        'referrer': event.referrer,
        'visitor': event.visitor_id or '',
    }


def _from_fields(link_id: str, event_id: str, fields: dict[str, str]) -> ClickEventModel:
    return ClickEventModel(
        id=event_id,
        link_id=link_id,
        occurred_at=datetime.fromisoformat(fields['created_at']),
        device_class=fields.get('device') or UNKNOWN,
        browser=fields.get('browser') or UNKNOWN,
        os=fields.get('os') or UNKNOWN,
        country=fields.get('country') or None,
        city=fields.get('city') or None,
        referrer=fields.get('referrer') or DIRECT_REFERRER,
        visitor_id=fields.get('visitor') or None,
    )


class ClickRedisDAO(RedisClientMixin, ClickBaseDAO):
    """Redis-based Data Access Object (DAO) for click events

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.
    """

    @handle_redis_connection_error
    @beartype
    def record(self, event: ClickEventModel, **kwargs) -> ClickEventModel:
        """Append a click event and increment the link's click counter atomically

        Args:
            event (ClickEventModel):
                Event to append. Its `id` is ignored; Redis assigns one.

        Returns:
            ClickEventModel: the stored event, carrying the stream entry id.

        Raises:
            LinkRecordNotFoundError:
                If the link does not exist.
            DataStoreError:
                If a Redis connection issue occurs during the transaction.
        """
        link_key = self.keys.link_key(event.link_id)
        if not self.redis.exists(link_key):
            raise LinkRecordNotFoundError(f"Link with id '{event.link_id}' not found.")

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.xadd(self.keys.link_clicks_key(event.link_id), _to_fields(event))
            pipe.hincrby(link_key, 'click_count', 1)
            event_id, _ = pipe.execute()

        return replace(event, id=event_id)

    @handle_redis_connection_error
    @beartype
    def events(self, link_id: str, time_range: TimeRange | None = None, **kwargs) -> list[ClickEventModel]:
        """Return the link's click events in ingestion order

        NOTE: The time range is applied to the recorded `created_at` field rather
              than to stream ids, since ids reflect Redis server time.
        """
        entries = self.redis.xrange(self.keys.link_clicks_key(link_id), '-', '+')
        events = [_from_fields(link_id, event_id, fields) for event_id, fields in entries]
        if time_range is None:
            return events
        return [event for event in events if event.occurred_at in time_range]

    @handle_redis_connection_error
    @beartype
    def count(self, link_id: str, **kwargs) -> int:
        return self.redis.xlen(self.keys.link_clicks_key(link_id))
