"""Shared Redis connection setup for the link and click DAOs

A Lambda invocation opens one connection and hands it to every DAO it builds:
the link DAO creates (and pings) the client, the click DAO reuses it and skips
the second PING.

Classes:
    RedisClientMixin:
        Client construction, key schema and connectivity check.

Example:
    >>> class LinkRedisDAO(RedisClientMixin, LinkBaseDAO):
    ...     pass
    ...
    >>> link_dao = LinkRedisDAO(redis_host='redis', prefix='clickshortener:dev')
    >>> click_dao = ClickRedisDAO(redis_client=link_dao.redis, prefix='clickshortener:dev', healthcheck=False)
    >>> click_dao.keys.link_clicks_key('0f1e2d3c')
    'clickshortener:dev:links:0f1e2d3c:clicks'
"""

from typing import Optional

import redis

from clickshortener.dao.redis.redis_key_schema import RedisKeySchema
from clickshortener.dao.exceptions import DataStoreError


class RedisClientMixin:
    """Redis client and key schema for Redis-backed DAOs

    Attributes:
        redis (redis.Redis):
            Client shared by all operations of the DAO. Responses are decoded
            to `str`; the DAOs parse hashes and stream entries as text.
        keys (RedisKeySchema):
            Namespaced key names (`<app>:<env>:links:<id>`, ...).
    """

    def __init__(
        self,
        redis_host: Optional[str] = 'localhost',
        redis_port: Optional[int] = 6379,
        redis_db: Optional[int] = 0,
        redis_decode_responses: Optional[bool] = True,
        redis_username: Optional[str] = None,
        redis_password: Optional[str] = None,
        redis_socket_timeout: Optional[float] = None,
        redis_client: Optional[redis.Redis] = None,
        prefix: Optional[str] = None,
        healthcheck: bool = True,
    ):
        """Connect to Redis, or adopt an existing client

        The `redis_*` keyword arguments mirror the `redis` section of the
        lambda's AppConfig document, prefixed (`host` -> `redis_host`).

        Args:
            redis_client (Optional[redis.Redis]):
                Client to reuse. The connection arguments are ignored when given.
            prefix (Optional[str]):
                Key namespace, normally `app_prefix()`.
            healthcheck (bool):
                PING the server before returning. Disable when adopting a
                client another DAO has already checked.

        Raises:
            DataStoreError:
                If the health check cannot reach Redis.
        """
        if redis_client is None:
            redis_client = redis.Redis(
                host=redis_host,
                port=int(redis_port),
                db=int(redis_db),
                decode_responses=redis_decode_responses,
                username=redis_username,
                password=redis_password,
                socket_timeout=redis_socket_timeout,
            )

        self.redis = redis_client
        self.keys = RedisKeySchema(prefix=prefix)

        if healthcheck:
            self._healthcheck()

    def _endpoint(self) -> str:
        info = self.redis.connection_pool.connection_kwargs
        return f"{info.get('host')}:{info.get('port')}/{info.get('db')}"

    def _healthcheck(self, raise_error: bool = True) -> bool:
        """PING Redis. Returns False instead of raising when `raise_error` is off."""
        try:
            self.redis.ping()
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            if not raise_error:
                return False
            raise DataStoreError(f"Can't connect to Redis at {self._endpoint()}. Check the provided configuration parameters.") from e
        return True
