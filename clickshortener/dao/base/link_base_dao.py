"""Abstract base class for Link data access objects (DAOs).

This class establishes a consistent contract for all Link DAO implementations,
regardless of the underlying storage mechanism (e.g., Redis, DynamoDB, PostgreSQL).

Responsibilities:
    - Own the global slug namespace: a slug maps to at most one link, and
      reserving a slug is atomic with persisting the link record.
    - Provide lookup by slug (generated or custom) and by link id.
    - Apply owner edits and soft deletes.
    - Standardize error handling across multiple data store implementations.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from clickshortener.models import LinkModel
        >>> from clickshortener.dao.redis import LinkRedisDAO

        >>> dao = LinkRedisDAO(...)

        >>> link = LinkModel(
        ...     id='0f1e2d3c',
        ...     slug='my-link',
        ...     target_url='https://example.com/blog/article-123',
        ...     owner_id='user-1',
        ... )
        >>> dao.insert(link)

        >>> dao.find_by_slug('MY-LINK').target_url
        'https://example.com/blog/article-123'
"""

from abc import ABC, abstractmethod
from datetime import datetime

from clickshortener.models import LinkModel


class LinkBaseDAO(ABC):
    """Interface for Link data access objects (DAOs).

    Methods:
        insert(link: LinkModel, **kwargs) -> LinkBaseDAO:
            Reserve the link's slugs and persist the record in one atomic unit.
            Raises SlugAlreadyExistsError if any slug is already reserved.

        get(link_id: str, **kwargs) -> LinkModel:
            Retrieve a link by id (including soft-deleted ones).
            Raises LinkRecordNotFoundError if the link does not exist.

        find_by_slug(slug: str, **kwargs) -> LinkModel:
            Retrieve a link by any of its slugs, case-insensitively.
            Raises LinkRecordNotFoundError if no link holds the slug.

        update(link_id: str, changes: dict, **kwargs) -> LinkModel:
            Overwrite mutable fields (target_url, title, active, expires_at).
            Raises LinkRecordNotFoundError if the link does not exist.

        change_slug(link_id: str, new_slug: str, **kwargs) -> LinkModel:
            Atomically reserve a new primary slug and release the old one.
            Raises SlugAlreadyExistsError / LinkRecordNotFoundError.

        soft_delete(link_id: str, deleted_at: datetime, **kwargs) -> LinkModel:
            Mark the link deleted and drop it from its owner's listing.

        list_by_owner(owner_id: str, **kwargs) -> list[LinkModel]:
            Owner's live links, newest first.

    All methods raise DataStoreError on transient data store failures.
    """

    @abstractmethod
    def insert(self, link: LinkModel, **kwargs) -> 'LinkBaseDAO':
        """Insert a new link and reserve its slugs.

        Raises:
            SlugAlreadyExistsError:
                If one of the link's slugs is already reserved, including when a
                concurrent writer reserves it first.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def get(self, link_id: str, **kwargs) -> LinkModel:
        pass

    @abstractmethod
    def find_by_slug(self, slug: str, **kwargs) -> LinkModel:
        pass

    @abstractmethod
    def update(self, link_id: str, changes: dict, **kwargs) -> LinkModel:
        pass

    @abstractmethod
    def change_slug(self, link_id: str, new_slug: str, **kwargs) -> LinkModel:
        pass

    @abstractmethod
    def soft_delete(self, link_id: str, deleted_at: datetime, **kwargs) -> LinkModel:
        pass

    @abstractmethod
    def list_by_owner(self, owner_id: str, **kwargs) -> list[LinkModel]:
        pass
