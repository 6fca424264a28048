"""Unit tests for RedirectResolver

Test coverage includes:

1. Resolution states
   - Ensures live links resolve to their target.
   - Confirms unknown, malformed and deleted slugs are NOT_FOUND.
   - Confirms inactive links are INACTIVE regardless of expiry.
   - Confirms expired links are EXPIRED, with expiry compared against `now`.

2. Raising interface
   - Ensures resolve() raises a distinct error per terminal state, carrying the link.

3. Transient failures
   - Ensures lookups retry once on DataStoreError and then give up.
"""

from datetime import datetime, timedelta, UTC

import pytest

from clickshortener.models import LinkModel
from clickshortener.dao.exceptions import DataStoreError, LinkRecordNotFoundError
from clickshortener.exceptions import LinkNotFoundError, LinkDisabledError, LinkExpiredError
from clickshortener.engine import RedirectResolver, ResolutionState


NOW = datetime(2025, 10, 15, 12, 0, tzinfo=UTC)


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr('clickshortener.utils.helpers.time.sleep', lambda seconds: None)


@pytest.fixture
def resolver(mock_link_dao) -> RedirectResolver:
    return RedirectResolver(mock_link_dao)


def make_link(**overrides) -> LinkModel:
    fields = {
        'id': 'link-1',
        'slug': 'my-link',
        'target_url': 'https://example.com/page',
        'owner_id': 'user-1',
    }
    return LinkModel(**(fields | overrides))


# -------------------------------
# 1. Resolution states
# -------------------------------


def test_lookup_resolved(resolver, mock_link_dao):
    mock_link_dao.find_by_slug.return_value = make_link()

    resolution = resolver.lookup('My-Link', now=NOW)

    assert resolution.state is ResolutionState.RESOLVED
    assert resolution.resolved
    assert resolution.target_url == 'https://example.com/page'
    mock_link_dao.find_by_slug.assert_called_once_with('my-link')


def test_lookup_unknown_slug(resolver, mock_link_dao):
    mock_link_dao.find_by_slug.side_effect = LinkRecordNotFoundError()

    resolution = resolver.lookup('nope42', now=NOW)

    assert resolution.state is ResolutionState.NOT_FOUND
    assert resolution.link is None
    assert resolution.target_url is None


@pytest.mark.parametrize('slug', ['', 'ab', 'has space', 'under_score', 'x' * 31, None])
def test_lookup_malformed_slug_skips_store(resolver, mock_link_dao, slug):
    """Ensure slugs that could never exist are rejected without a store round trip."""
    assert resolver.lookup(slug, now=NOW).state is ResolutionState.NOT_FOUND
    mock_link_dao.find_by_slug.assert_not_called()


def test_lookup_deleted_link(resolver, mock_link_dao):
    mock_link_dao.find_by_slug.return_value = make_link(deleted_at=NOW - timedelta(days=1))

    assert resolver.lookup('my-link', now=NOW).state is ResolutionState.NOT_FOUND


def test_lookup_inactive_link(resolver, mock_link_dao):
    link = make_link(active=False)
    mock_link_dao.find_by_slug.return_value = link

    resolution = resolver.lookup('my-link', now=NOW)

    assert resolution.state is ResolutionState.INACTIVE
    assert resolution.link == link
    assert resolution.target_url is None  # never followed


def test_lookup_inactive_and_expired_link(resolver, mock_link_dao):
    """Ensure inactivity is decided before expiry."""
    mock_link_dao.find_by_slug.return_value = make_link(active=False, expires_at=NOW - timedelta(days=1))

    assert resolver.lookup('my-link', now=NOW).state is ResolutionState.INACTIVE


def test_lookup_expired_link(resolver, mock_link_dao):
    mock_link_dao.find_by_slug.return_value = make_link(expires_at=NOW - timedelta(seconds=1))

    assert resolver.lookup('my-link', now=NOW).state is ResolutionState.EXPIRED


def test_lookup_link_expiring_later(resolver, mock_link_dao):
    mock_link_dao.find_by_slug.return_value = make_link(expires_at=NOW + timedelta(seconds=1))

    assert resolver.lookup('my-link', now=NOW).state is ResolutionState.RESOLVED


def test_lookup_link_expiring_right_now(resolver, mock_link_dao):
    """Ensure a link still resolves at the exact moment of expiry."""
    mock_link_dao.find_by_slug.return_value = make_link(expires_at=NOW)

    assert resolver.lookup('my-link', now=NOW).state is ResolutionState.RESOLVED


# -------------------------------
# 2. Raising interface
# -------------------------------


def test_resolve_returns_link(resolver, mock_link_dao):
    link = make_link()
    mock_link_dao.find_by_slug.return_value = link

    assert resolver.resolve('my-link', now=NOW) == link


def test_resolve_unknown_slug(resolver, mock_link_dao):
    mock_link_dao.find_by_slug.side_effect = LinkRecordNotFoundError()

    with pytest.raises(LinkNotFoundError, match="No link found for slug 'nope42'."):
        resolver.resolve('nope42', now=NOW)


def test_resolve_disabled_link(resolver, mock_link_dao):
    link = make_link(active=False)
    mock_link_dao.find_by_slug.return_value = link

    with pytest.raises(LinkDisabledError) as exc_info:
        resolver.resolve('my-link', now=NOW)
    assert exc_info.value.link == link
    assert exc_info.value.error_code == 'LINK_DISABLED'


def test_resolve_expired_link(resolver, mock_link_dao):
    link = make_link(expires_at=NOW - timedelta(hours=1))
    mock_link_dao.find_by_slug.return_value = link

    with pytest.raises(LinkExpiredError) as exc_info:
        resolver.resolve('my-link', now=NOW)
    assert exc_info.value.link == link
    assert exc_info.value.error_code == 'LINK_EXPIRED'


def test_resolution_errors_are_distinct():
    """Ensure terminal states are never conflated into a generic not-found."""
    assert not issubclass(LinkDisabledError, LinkNotFoundError)
    assert not issubclass(LinkExpiredError, LinkNotFoundError)
    assert len({LinkNotFoundError.error_code, LinkDisabledError.error_code, LinkExpiredError.error_code}) == 3


# -------------------------------
# 3. Transient failures
# -------------------------------


def test_lookup_retries_once_on_transient_error(resolver, mock_link_dao):
    mock_link_dao.find_by_slug.side_effect = [DataStoreError('Timeout'), make_link()]

    assert resolver.lookup('my-link', now=NOW).resolved
    assert mock_link_dao.find_by_slug.call_count == 2


def test_lookup_gives_up_after_one_retry(resolver, mock_link_dao):
    mock_link_dao.find_by_slug.side_effect = DataStoreError('Timeout')

    with pytest.raises(DataStoreError):
        resolver.lookup('my-link', now=NOW)
    assert mock_link_dao.find_by_slug.call_count == 2
