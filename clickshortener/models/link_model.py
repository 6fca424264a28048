from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Optional


@dataclass(frozen=True)
class LinkModel:
    """Represent a shortened URL owned by a single user.

    Attributes:
        id (str):
            Opaque unique identifier, assigned at creation.
        slug (str):
            Lower-case short identifier forming the public path segment.
        target_url (str):
            Absolute http(s) destination the slug redirects to.
        owner_id (str):
            Identifier of the user who created the link.
        custom_slug (Optional[str]):
            Slug picked by the owner at creation time. None for generated slugs.
        title (Optional[str]):
            Free-text label.
        active (bool):
            Owner-controlled switch. Inactive links never resolve.
        expires_at (Optional[datetime]):
            Moment after which the link no longer resolves.
        click_count (int):
            Cached number of recorded click events.
        created_at (Optional[datetime]):
            Creation timestamp (UTC).
        deleted_at (Optional[datetime]):
            Soft-delete timestamp. Deleted links never resolve.

    Example:
        >>> from datetime import datetime, timedelta, UTC
        >>> link = LinkModel(
        ...     id='0f1e2d3c',
        ...     slug='my-link',
        ...     target_url='https://example.com/article/123',
        ...     owner_id='user-1',
        ...     expires_at=datetime.now(UTC) - timedelta(seconds=1),
        ... )
        >>> link.is_expired()
        True
        >>> link.deleted
        False
    """

    id: str
    slug: str
    target_url: str
    owner_id: str
    custom_slug: Optional[str] = None
    title: Optional[str] = None
    active: bool = True
    expires_at: Optional[datetime] = None
    click_count: int = 0
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def deleted(self) -> bool:
        return self.deleted_at is not None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now or datetime.now(UTC))

    @property
    def slugs(self) -> set[str]:
        """All slugs this link occupies in the slug namespace."""
        return {s for s in (self.slug, self.custom_slug) if s}
