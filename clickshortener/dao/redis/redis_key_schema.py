import functools
from collections.abc import Callable


__all__ = ['RedisKeySchema']  # hide internal decorator prefix_key from imports


def prefix_key(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> str:
        key = func(self, *args, **kwargs)
        return f'{self.prefix}:{key}' if self.prefix is not None else key

    return wrapper


class RedisKeySchema:
    """Provide standardized Redis keys for storing links and click events.

    An optional prefix can be provided to namespace all generated keys.
    It is highly encouraged to set a custom prefix for each app and environment,
    e.g. "clickshortener:prod" or "clickshortener:dev".

    Keys:
        links:<link_id>              HASH    link record
        slugs:<slug>                 STRING  link id (the unique slug index)
        users:<owner_id>:links       ZSET    owner's link ids scored by creation time
        links:<link_id>:clicks       STREAM  append-only click event log
    """

    def __init__(self, prefix: str | None = None):
        if prefix is not None and not isinstance(prefix, str):
            raise TypeError(f'Prefix must be of type string (given type: {type(prefix)}).')

        self.prefix = prefix

    @prefix_key
    def link_key(self, link_id: str) -> str:
        return f'links:{link_id}'

    @prefix_key
    def slug_key(self, slug: str) -> str:
        return f'slugs:{slug.lower()}'

    @prefix_key
    def owner_links_key(self, owner_id: str) -> str:
        return f'users:{owner_id}:links'

    @prefix_key
    def link_clicks_key(self, link_id: str) -> str:
        return f'links:{link_id}:clicks'
