import functools
import redis
from typing import TypeVar, Any
from collections.abc import Callable

from clickshortener.dao.exceptions import DataStoreError, DataStoreConfigurationError


__all__ = []

F = TypeVar('F', bound=Callable[..., Any])


def _describe_connection(client: redis.Redis) -> str:
    info = client.connection_pool.connection_kwargs
    return f"{info.get('host')}:{info.get('port')}/{info.get('db')}"


def handle_redis_connection_error[F](method: F) -> F:
    """Wrap Redis-interacting DAO methods to translate redis-py errors

    Connection failures and timeouts are transient and become DataStoreError.
    Command errors (e.g. WRONGTYPE) point at a misconfigured data store and
    become DataStoreConfigurationError.

    Args:
        method (Callable[..., Any]):
            DAO method performing Redis operations.

    Returns:
        Callable[..., Any]:
            Wrapped method raising DAO exceptions instead of redis-py ones.

    Example:
        >>> @handle_redis_connection_error
        ... def click_count(self, link_id):
        ...     return self.redis.hget(self.keys.link_key(link_id), 'click_count')
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            raise DataStoreError(f"Can't connect to Redis at {_describe_connection(self.redis)}.") from e
        except redis.exceptions.ResponseError as e:
            raise DataStoreConfigurationError(f'Redis at {_describe_connection(self.redis)} rejected a command: {e}') from e

    return wrapper
