"""Input normalization for link creation and editing.

Functions:
    normalize_url(url) -> str
        Prepend https:// when no scheme is given and validate the result.
    normalize_slug(slug) -> str
        Case-fold a slug and validate its charset and length.
    is_valid_slug(slug) -> bool
        Non-raising slug check, used on the hot redirect path.
    parse_timestamp(value) -> datetime | None
        Parse an ISO 8601 timestamp into UTC.
"""

import re
import urllib.parse
from datetime import datetime, UTC

from clickshortener.exceptions import InvalidURLError, InvalidSlugError, InvalidTimestampError
from clickshortener.utils.constants import SLUG_MIN_LENGTH, SLUG_MAX_LENGTH


MAX_URL_LENGTH = 2048

SLUG_PATTERN = re.compile(rf'[a-z0-9-]{{{SLUG_MIN_LENGTH},{SLUG_MAX_LENGTH}}}')
_SCHEME_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*://')


def normalize_url(url: str) -> str:
    """Return an absolute http(s) URL or raise InvalidURLError.

    Example:
        >>> normalize_url('example.com/page')
        'https://example.com/page'
        >>> normalize_url('ftp://example.com')
        Traceback (most recent call last):
            ...
        clickshortener.exceptions.InvalidURLError: URL must use http or https scheme (given: 'ftp://example.com').
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError('URL is required.')

    url = url.strip()
    if len(url) > MAX_URL_LENGTH:
        raise InvalidURLError(f'URL is too long (max {MAX_URL_LENGTH} characters).')
    if any(c.isspace() for c in url):
        raise InvalidURLError(f'URL must not contain whitespace (given: {url!r}).')

    if not _SCHEME_PATTERN.match(url):
        url = f'https://{url}'

    components = urllib.parse.urlsplit(url)
    if components.scheme.lower() not in {'http', 'https'}:
        raise InvalidURLError(f'URL must use http or https scheme (given: {url!r}).')

    try:
        hostname = components.hostname
        components.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise InvalidURLError(f'URL has an invalid host or port (given: {url!r}).') from e

    if not hostname:
        raise InvalidURLError(f'URL must have a valid domain (given: {url!r}).')
    return url


def normalize_slug(slug: str) -> str:
    """Case-fold a slug and validate it against ^[a-z0-9-]{3,30}$.

    Example:
        >>> normalize_slug('My-Link')
        'my-link'
    """
    if not isinstance(slug, str):
        raise InvalidSlugError(f'Slug must be of type string (given type: {type(slug)}).')

    folded = slug.strip().lower()
    if len(folded) < SLUG_MIN_LENGTH:
        raise InvalidSlugError(f'Slug must be at least {SLUG_MIN_LENGTH} characters long.')
    if len(folded) > SLUG_MAX_LENGTH:
        raise InvalidSlugError(f'Slug cannot exceed {SLUG_MAX_LENGTH} characters.')
    if not SLUG_PATTERN.fullmatch(folded):
        raise InvalidSlugError('Slug can only contain letters, numbers, and hyphens.')
    return folded


def is_valid_slug(slug: str) -> bool:
    return isinstance(slug, str) and SLUG_PATTERN.fullmatch(slug.lower()) is not None


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    Naive timestamps are taken as UTC. None and '' clear the value.

    Example:
        >>> parse_timestamp('2025-01-31T23:59:59Z')
        datetime.datetime(2025, 1, 31, 23, 59, 59, tzinfo=datetime.timezone.utc)
    """
    if value is None or value == '':
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as e:
            raise InvalidTimestampError(f'Timestamp must be in ISO 8601 format (given: {value!r}).') from e
    if not isinstance(value, datetime):
        raise InvalidTimestampError(f'Timestamp must be an ISO 8601 string (given type: {type(value)}).')
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
