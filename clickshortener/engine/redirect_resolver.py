"""Redirect resolution state machine

Every resolution request runs through:

    Lookup ──> NotFound   (no live link holds the slug)
           ├─> Inactive   (owner switched the link off)
           ├─> Expired    (expires_at is in the past)
           └─> Resolved   (redirect to target_url)

Inactive is decided before Expired. Both are terminal on their own, so a
link that is inactive and expired never resolves either way.

The resolver only reads from the Link Store. Recording the click is the
caller's business once the state is Resolved.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, UTC
from enum import StrEnum

from clickshortener.models import LinkModel
from clickshortener.dao.base import LinkBaseDAO
from clickshortener.dao.exceptions import DataStoreError, LinkRecordNotFoundError
from clickshortener.exceptions import LinkNotFoundError, LinkDisabledError, LinkExpiredError
from clickshortener.utils.helpers import retry_on_transient_error
from clickshortener.utils.validators import is_valid_slug


logger = logging.getLogger(__name__)


class ResolutionState(StrEnum):
    RESOLVED = 'resolved'
    NOT_FOUND = 'not_found'
    INACTIVE = 'inactive'
    EXPIRED = 'expired'


@dataclass(frozen=True)
class Resolution:
    """Outcome of one lookup. `link` is set for every state except NOT_FOUND."""

    state: ResolutionState
    slug: str
    link: LinkModel | None = None

    @property
    def resolved(self) -> bool:
        return self.state is ResolutionState.RESOLVED

    @property
    def target_url(self) -> str | None:
        return self.link.target_url if self.resolved else None


class RedirectResolver:
    def __init__(self, link_dao: LinkBaseDAO):
        self.link_dao = link_dao

    @retry_on_transient_error((DataStoreError,))
    def _find(self, slug: str) -> LinkModel | None:
        try:
            return self.link_dao.find_by_slug(slug)
        except LinkRecordNotFoundError:
            return None

    def lookup(self, slug: str, now: datetime | None = None) -> Resolution:
        """Decide the resolution state of a slug without raising for terminal states

        Raises:
            DataStoreError:
                If the Link Store stays unreachable after one retry.
        """
        slug = (slug or '').strip().lower()
        if not is_valid_slug(slug):
            return Resolution(ResolutionState.NOT_FOUND, slug)

        link = self._find(slug)
        if link is None or link.deleted:
            return Resolution(ResolutionState.NOT_FOUND, slug)
        if not link.active:
            return Resolution(ResolutionState.INACTIVE, slug, link)
        if link.is_expired(now or datetime.now(UTC)):
            return Resolution(ResolutionState.EXPIRED, slug, link)
        return Resolution(ResolutionState.RESOLVED, slug, link)

    def resolve(self, slug: str, now: datetime | None = None) -> LinkModel:
        """Resolve a slug to its live link

        Raises:
            LinkNotFoundError:
                If no live link holds the slug.
            LinkDisabledError:
                If the link is inactive. The link is attached to the error.
            LinkExpiredError:
                If the link has expired. The link is attached to the error.
        """
        resolution = self.lookup(slug, now=now)
        match resolution.state:
            case ResolutionState.NOT_FOUND:
                raise LinkNotFoundError(f"No link found for slug '{resolution.slug}'.")
            case ResolutionState.INACTIVE:
                raise LinkDisabledError(f"Link '{resolution.slug}' has been disabled by its owner.", link=resolution.link)
            case ResolutionState.EXPIRED:
                raise LinkExpiredError(f"Link '{resolution.slug}' has expired.", link=resolution.link)
        return resolution.link
