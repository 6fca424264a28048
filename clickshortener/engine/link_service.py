"""Link engine facade

LinkService wires the slug registry, redirect resolver, click recorder and
analytics aggregator over one pair of DAOs, and is the only entry point the
Lambda handlers use.

Operations:
    create_link(owner_id, original_url, custom_slug=None, title=None, expires_at=None) -> LinkModel
    resolve(slug) -> LinkModel
    lookup(slug) -> Resolution
    record_click(link_id, context) -> None
    get_summary(link_id, time_range=None, granularity=HOURLY, owner_id=None) -> SummaryModel
    get_link(owner_id, link_id) -> LinkModel
    update_link(owner_id, link_id, changes) -> LinkModel
    delete_link(owner_id, link_id) -> LinkModel
    list_links(owner_id) -> list[LinkModel]
    owner_stats(owner_id) -> OwnerStatsModel

Owner-scoped operations report links owned by someone else exactly like
missing links (LinkNotFoundError), so link ids of other owners stay hidden.

Example:
    >>> service = LinkService(LinkRedisDAO(prefix='app:dev'), ClickRedisDAO(prefix='app:dev'))
    >>> link = service.create_link('user-1', 'example.com/page', custom_slug='My-Link')
    >>> (link.slug, link.target_url)
    ('my-link', 'https://example.com/page')
    >>> service.resolve('MY-LINK').id == link.id
    True
"""

import uuid
import logging
from datetime import datetime, UTC

from clickshortener.models import LinkModel, ClientContext, Granularity, OwnerStatsModel, SummaryModel, TimeRange
from clickshortener.dao.base import LinkBaseDAO, ClickBaseDAO
from clickshortener.dao.exceptions import DataStoreError, LinkRecordNotFoundError
from clickshortener.exceptions import LinkNotFoundError, ValidationError
from clickshortener.engine.slug_registry import SlugRegistry
from clickshortener.engine.redirect_resolver import RedirectResolver, Resolution
from clickshortener.engine.click_recorder import ClickRecorder, CLICK_RECORD_FAILED
from clickshortener.engine.analytics import AnalyticsAggregator
from clickshortener.utils.helpers import retry_on_transient_error
from clickshortener.utils.validators import normalize_url, parse_timestamp
from clickshortener.utils.constants import DEFAULT_SLUG_LENGTH, DEFAULT_MAX_ALLOCATION_ATTEMPTS


logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({'target_url', 'title', 'active', 'expires_at', 'slug'})


def _clean_title(title: str | None) -> str | None:
    if title is None:
        return None
    if not isinstance(title, str):
        raise ValidationError(f'Title must be of type string (given type: {type(title)}).')
    return title.strip() or None


class LinkService:
    def __init__(
        self,
        link_dao: LinkBaseDAO,
        click_dao: ClickBaseDAO,
        slug_length: int = DEFAULT_SLUG_LENGTH,
        max_allocation_attempts: int = DEFAULT_MAX_ALLOCATION_ATTEMPTS,
        recorder: ClickRecorder | None = None,
    ):
        self.link_dao = link_dao
        self.click_dao = click_dao
        self.registry = SlugRegistry(link_dao, slug_length=slug_length, max_attempts=max_allocation_attempts)
        self.resolver = RedirectResolver(link_dao)
        self.recorder = recorder or ClickRecorder(click_dao)
        self.analytics = AnalyticsAggregator(link_dao, click_dao)

    # -------------------------------
    # Link lifecycle
    # -------------------------------

    def create_link(
        self,
        owner_id: str,
        original_url: str,
        custom_slug: str | None = None,
        title: str | None = None,
        expires_at: datetime | str | None = None,
        now: datetime | None = None,
    ) -> LinkModel:
        """Validate input, allocate a slug and persist a new link

        Every validation error is raised before the data store is touched.

        Raises:
            InvalidURLError, InvalidSlugError, InvalidTimestampError:
                If the input is rejected.
            SlugTakenError:
                If the custom slug is already reserved.
            AllocationExhaustedError:
                If no free generated slug was found.
        """
        draft = LinkModel(
            id=uuid.uuid4().hex,
            slug='',
            target_url=normalize_url(original_url),
            owner_id=owner_id,
            title=_clean_title(title),
            expires_at=parse_timestamp(expires_at),
            created_at=now or datetime.now(UTC),
        )
        link = self.registry.allocate(draft, custom_slug=custom_slug)
        logger.info('Created link.', extra={'linkId': link.id, 'slug': link.slug, 'ownerId': owner_id, 'custom': custom_slug is not None})
        return link

    def get_link(self, owner_id: str, link_id: str) -> LinkModel:
        """Return a live link owned by `owner_id`

        Raises:
            LinkNotFoundError:
                If the link is missing, deleted, or owned by someone else.
        """
        try:
            link = self.link_dao.get(link_id)
        except LinkRecordNotFoundError as e:
            raise LinkNotFoundError(f"No link found with id '{link_id}'.") from e

        if link.deleted or link.owner_id != owner_id:
            raise LinkNotFoundError(f"No link found with id '{link_id}'.")
        return link

    def update_link(self, owner_id: str, link_id: str, changes: dict) -> LinkModel:
        """Apply owner edits to a link

        Accepted fields: target_url, title, active, expires_at, slug.

        Raises:
            ValidationError:
                If a field is unknown or a value is invalid.
            SlugTakenError:
                If the new slug is held by another link.
            LinkNotFoundError:
                If the link is not a live link of the owner.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f'Cannot update link fields: {", ".join(sorted(unknown))}.')

        fields = {}
        if 'target_url' in changes:
            fields['target_url'] = normalize_url(changes['target_url'])
        if 'title' in changes:
            fields['title'] = _clean_title(changes['title'])
        if 'active' in changes:
            if not isinstance(changes['active'], bool):
                raise ValidationError(f"'active' must be a boolean (given type: {type(changes['active'])}).")
            fields['active'] = changes['active']
        if 'expires_at' in changes:
            fields['expires_at'] = parse_timestamp(changes['expires_at'])

        link = self.get_link(owner_id, link_id)
        if changes.get('slug') is not None:
            link = self.registry.reassign(link.id, changes['slug'])
        if fields:
            link = self.link_dao.update(link.id, fields)

        logger.info('Updated link.', extra={'linkId': link_id, 'ownerId': owner_id, 'fields': sorted(changes)})
        return link

    def delete_link(self, owner_id: str, link_id: str, now: datetime | None = None) -> LinkModel:
        """Soft delete a link. Its click history is retained and its slugs stay reserved."""
        link = self.get_link(owner_id, link_id)
        deleted = self.link_dao.soft_delete(link.id, now or datetime.now(UTC))
        logger.info('Deleted link.', extra={'linkId': link_id, 'ownerId': owner_id})
        return deleted

    def list_links(self, owner_id: str) -> list[LinkModel]:
        return self.link_dao.list_by_owner(owner_id)

    # -------------------------------
    # Redirects
    # -------------------------------

    def lookup(self, slug: str, now: datetime | None = None) -> Resolution:
        return self.resolver.lookup(slug, now=now)

    def resolve(self, slug: str, now: datetime | None = None) -> LinkModel:
        """Resolve a slug to its live link (see RedirectResolver.resolve)"""
        return self.resolver.resolve(slug, now=now)

    def record_click(self, link_id: str, context: ClientContext) -> None:
        """Record a click without blocking. Failures are logged, never raised."""
        try:
            self.recorder.record_in_background(link_id, context)
        except Exception:
            # The redirect has already been decided
            logger.exception('Failed to schedule click event.', extra={'event': CLICK_RECORD_FAILED, 'linkId': link_id})

    def shutdown(self, wait: bool = True) -> None:
        self.recorder.shutdown(wait=wait)

    # -------------------------------
    # Analytics
    # -------------------------------

    @retry_on_transient_error((DataStoreError,))
    def get_summary(
        self,
        link_id: str,
        time_range: TimeRange | None = None,
        granularity: Granularity = Granularity.HOURLY,
        owner_id: str | None = None,
        now: datetime | None = None,
    ) -> SummaryModel:
        """Summarize a link's clicks. When `owner_id` is given the link must belong to it.

        Raises:
            LinkNotFoundError:
                If the link does not exist (or is not a live link of the owner).
        """
        if owner_id is not None:
            self.get_link(owner_id, link_id)

        try:
            return self.analytics.summarize(link_id, time_range=time_range, granularity=granularity, now=now)
        except LinkRecordNotFoundError as e:
            raise LinkNotFoundError(f"No link found with id '{link_id}'.") from e

    def owner_stats(self, owner_id: str, now: datetime | None = None) -> OwnerStatsModel:
        return self.analytics.owner_stats(owner_id, now=now)
