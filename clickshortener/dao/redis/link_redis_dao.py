"""Data Access Object (DAO) implementation for managing links in Redis

This module provides a Redis-based implementation of LinkBaseDAO.

Responsibilities:
    - Own the slug namespace through `slugs:<slug>` index keys;
    - Reserve slugs and persist link records in one optimistic transaction;
    - Retrieve links by id or slug, apply owner edits and soft deletes;
    - Maintain the per-owner link listing;
    - Map store failures onto DAO exceptions.

Classes:
    LinkRedisDAO:
        DAO for storing and retrieving LinkModel in a Redis datastore.

Example:
    >>> from clickshortener.models import LinkModel
    >>> from clickshortener.dao.redis import LinkRedisDAO

    >>> dao = LinkRedisDAO(prefix="app:dev")
    >>> dao.insert(LinkModel(id='0f1e2d3c', slug='abc123', target_url='https://example.com/page', owner_id='user-1'))
    <LinkRedisDAO>
    >>> dao.find_by_slug('abc123').target_url
    'https://example.com/page'
"""

from datetime import datetime

import redis
from beartype import beartype

from clickshortener.models import LinkModel
from clickshortener.dao.base import LinkBaseDAO
from clickshortener.dao.redis.mixins import RedisClientMixin
from clickshortener.dao.redis.helpers import handle_redis_connection_error
from clickshortener.dao.exceptions import SlugAlreadyExistsError, LinkRecordNotFoundError


CHANGE_SLUG_ATTEMPTS = 5

# Link fields an owner may overwrite through update(), mapped to their hash field names
UPDATABLE_FIELDS = {
    'target_url': 'original_url',
    'title': 'title',
    'active': 'is_active',
    'expires_at': 'expires_at',
}


def _dump(value) -> str:
    """Encode a link attribute as a Redis hash value ('' stands for None)."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _load_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _to_mapping(link: LinkModel) -> dict[str, str]:
    return {
        'id': link.id,
        'slug': link.slug,
        'custom_slug': _dump(link.custom_slug),
        'owner_id': link.owner_id,
        'original_url': link.target_url,
        'title': _dump(link.title),
        'is_active': _dump(link.active),
        'expires_at': _dump(link.expires_at),
        'click_count': _dump(link.click_count),
        'created_at': _dump(link.created_at),
        'deleted_at': _dump(link.deleted_at),
    }


def _from_mapping(data: dict[str, str]) -> LinkModel:
    return LinkModel(
        id=data['id'],
        slug=data['slug'],
        target_url=data['original_url'],
        owner_id=data['owner_id'],
        custom_slug=data.get('custom_slug') or None,
        title=data.get('title') or None,
        active=data.get('is_active', '1') == '1',
        expires_at=_load_datetime(data.get('expires_at')),
        click_count=int(data.get('click_count') or 0),
        created_at=_load_datetime(data.get('created_at')),
        deleted_at=_load_datetime(data.get('deleted_at')),
    )


class LinkRedisDAO(RedisClientMixin, LinkBaseDAO):
    """Redis-based Data Access Object (DAO) for managing link records

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    NOTE: Slug uniqueness is enforced with WATCH/MULTI/EXEC on the slug index
          keys rather than an application lock. Two concurrent inserts of the
          same slug both observe the key as free, but only the first EXEC
          commits; the second aborts with a WatchError.
    """

    @handle_redis_connection_error
    @beartype
    def insert(self, link: LinkModel, **kwargs) -> 'LinkRedisDAO':
        """Reserve the link's slugs and store the link record atomically

        Args:
            link (LinkModel):
                Link to persist. Its `slug` (and `custom_slug`, if any) are reserved.

        Returns:
            LinkRedisDAO: self (for method chaining)

        Raises:
            SlugAlreadyExistsError:
                If a slug is already reserved, or a concurrent writer reserved it
                between our check and commit.
            DataStoreError:
                If a Redis connection issue occurs during the transaction.
        """
        slug_keys = sorted(self.keys.slug_key(slug) for slug in link.slugs)
        link_key = self.keys.link_key(link.id)
        owner_links_key = self.keys.owner_links_key(link.owner_id)
        score = link.created_at.timestamp() if link.created_at else 0

        with self.redis.pipeline(transaction=True) as pipe:
            try:
                pipe.watch(*slug_keys)
                if pipe.exists(*slug_keys):
                    raise SlugAlreadyExistsError(f"Slug '{link.slug}' is already reserved.")

                pipe.multi()
                for slug_key in slug_keys:
                    pipe.set(slug_key, link.id)
                pipe.hset(link_key, mapping=_to_mapping(link))
                pipe.zadd(owner_links_key, {link.id: score})
                pipe.execute()
            except redis.exceptions.WatchError as e:
                raise SlugAlreadyExistsError(f"Slug '{link.slug}' was reserved concurrently.") from e
        return self

    @handle_redis_connection_error
    @beartype
    def get(self, link_id: str, **kwargs) -> LinkModel:
        """Retrieve a link record by id

        Raises:
            LinkRecordNotFoundError:
                If the link does not exist in Redis.
            DataStoreError:
                If Redis connectivity issues occur.
        """
        data = self.redis.hgetall(self.keys.link_key(link_id))
        if not data:
            raise LinkRecordNotFoundError(f"Link with id '{link_id}' not found.")
        return _from_mapping(data)

    @handle_redis_connection_error
    @beartype
    def find_by_slug(self, slug: str, **kwargs) -> LinkModel:
        """Retrieve a link record by one of its slugs (case-insensitive)

        Raises:
            LinkRecordNotFoundError:
                If no link holds the slug.
            DataStoreError:
                If Redis connectivity issues occur.

        Example:
            >>> dao.find_by_slug('My-Link')
            LinkModel(id='0f1e2d3c', slug='my-link', ...)
        """
        link_id = self.redis.get(self.keys.slug_key(slug))
        if link_id is None:
            raise LinkRecordNotFoundError(f"Link with slug '{slug}' not found.")

        data = self.redis.hgetall(self.keys.link_key(link_id))
        if not data:
            # Dangling index entry: the record vanished after the slug was read
            raise LinkRecordNotFoundError(f"Link with slug '{slug}' not found.")
        return _from_mapping(data)

    @handle_redis_connection_error
    @beartype
    def update(self, link_id: str, changes: dict, **kwargs) -> LinkModel:
        """Overwrite mutable link fields

        Args:
            link_id (str):
                Id of the link to edit.
            changes (dict):
                Subset of {'target_url', 'title', 'active', 'expires_at'}.
                None clears optional fields.

        Raises:
            ValueError:
                If `changes` names a field that cannot be updated.
            LinkRecordNotFoundError:
                If the link does not exist.
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f'Cannot update link fields: {", ".join(sorted(unknown))}.')

        link_key = self.keys.link_key(link_id)
        if not self.redis.exists(link_key):
            raise LinkRecordNotFoundError(f"Link with id '{link_id}' not found.")

        if changes:
            self.redis.hset(link_key, mapping={UPDATABLE_FIELDS[name]: _dump(value) for name, value in changes.items()})
        return self.get(link_id)

    @handle_redis_connection_error
    @beartype
    def change_slug(self, link_id: str, new_slug: str, **kwargs) -> LinkModel:
        """Reserve a new primary slug for a link and release the previous one

        The custom slug picked at creation time stays reserved as an alias.

        Raises:
            SlugAlreadyExistsError:
                If the new slug is held by another link, or the link kept
                changing under concurrent writes.
            LinkRecordNotFoundError:
                If the link does not exist.
        """
        link_key = self.keys.link_key(link_id)
        new_slug_key = self.keys.slug_key(new_slug)

        with self.redis.pipeline(transaction=True) as pipe:
            for _ in range(CHANGE_SLUG_ATTEMPTS):
                try:
                    # Clicks also touch the link hash, so a conflict on it is retried
                    pipe.watch(new_slug_key, link_key)
                    current = pipe.hgetall(link_key)
                    if not current:
                        raise LinkRecordNotFoundError(f"Link with id '{link_id}' not found.")

                    holder = pipe.get(new_slug_key)
                    if holder not in (None, link_id):
                        raise SlugAlreadyExistsError(f"Slug '{new_slug}' is already reserved.")

                    old_slug = current['slug']
                    pipe.multi()
                    if holder is None:
                        pipe.set(new_slug_key, link_id)
                    # The custom slug stays reserved as an alias
                    if old_slug not in (new_slug.lower(), current.get('custom_slug')):
                        pipe.delete(self.keys.slug_key(old_slug))
                    pipe.hset(link_key, 'slug', new_slug.lower())
                    pipe.execute()
                    return self.get(link_id)
                except redis.exceptions.WatchError:
                    continue
        raise SlugAlreadyExistsError(f"Slug '{new_slug}' could not be reserved: link '{link_id}' kept changing concurrently.")

    @handle_redis_connection_error
    @beartype
    def soft_delete(self, link_id: str, deleted_at: datetime, **kwargs) -> LinkModel:
        """Mark a link deleted and remove it from its owner's listing

        Slugs of deleted links stay reserved so old short URLs never start
        pointing at someone else's destination.

        Raises:
            LinkRecordNotFoundError:
                If the link does not exist.
        """
        link_key = self.keys.link_key(link_id)
        owner_id = self.redis.hget(link_key, 'owner_id')
        if owner_id is None:
            raise LinkRecordNotFoundError(f"Link with id '{link_id}' not found.")

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.hset(link_key, 'deleted_at', _dump(deleted_at))
            pipe.zrem(self.keys.owner_links_key(owner_id), link_id)
            pipe.execute()
        return self.get(link_id)

    @handle_redis_connection_error
    @beartype
    def list_by_owner(self, owner_id: str, **kwargs) -> list[LinkModel]:
        """Return the owner's live links, newest first"""
        link_ids = self.redis.zrevrange(self.keys.owner_links_key(owner_id), 0, -1)
        if not link_ids:
            return []

        with self.redis.pipeline(transaction=False) as pipe:
            for link_id in link_ids:
                pipe.hgetall(self.keys.link_key(link_id))
            records = pipe.execute()

        links = [_from_mapping(data) for data in records if data]
        return [link for link in links if not link.deleted]
