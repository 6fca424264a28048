"""Slug generation utilities

This module provides the random candidate generator used by the slug
registry and the visitor fingerprint used for unique-visitor estimates.

Functions:
    generate_slug(length=6):
        Generate a random lower-case base-36 slug candidate.
    visitor_fingerprint(ip_address, user_agent):
        Hash client identifying signals into a short, stable visitor id.

Example:
    >>> from clickshortener.utils import generate_slug
    >>> generate_slug(6)
    'k3x9qa'
"""

import secrets
import string

import xxhash

from clickshortener.utils.constants import DEFAULT_SLUG_LENGTH, SLUG_MIN_LENGTH, SLUG_MAX_LENGTH


ALPHABET = string.digits + string.ascii_lowercase
BASE = len(ALPHABET)  # base-36: slugs compare case-insensitively, so uppercase adds no keyspace


def generate_slug(length: int = DEFAULT_SLUG_LENGTH) -> str:
    """Generate a random base-36 slug candidate.

    The keyspace is BASE**length (36**6 ≈ 2.2 billion for the default length),
    which keeps the chance of a collision per attempt negligible for expected
    link volumes. Collisions are still possible and are resolved by the slug
    registry retrying with a fresh candidate.

    Args:
        length (int, optional):
            Number of characters. Defaults to 6.

    Returns:
        str: Random slug over [0-9a-z].

    Raises:
        TypeError: If length is not an integer.
        ValueError: If length is outside the allowed slug length range.
    """
    if not isinstance(length, int):
        raise TypeError(f'Length must be of type integer (given type: {type(length)}).')
    if not SLUG_MIN_LENGTH <= length <= SLUG_MAX_LENGTH:
        raise ValueError(f'Length must be within [{SLUG_MIN_LENGTH}, {SLUG_MAX_LENGTH}] (given value: {length}).')

    # NOTE: `secrets` keeps generated slugs unpredictable to third parties
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))


def visitor_fingerprint(ip_address: str | None, user_agent: str | None) -> str | None:
    """Hash client IP and client signal into an approximate visitor identity.

    Two visitors behind the same NAT with identical browsers collapse into one
    fingerprint, and one visitor switching networks yields two. Good enough for
    an estimate, never an identity.

    Returns:
        str | None: 16 hex characters, or None when no signal is available.

    Example:
        >>> len(visitor_fingerprint('203.0.113.7', 'Mozilla/5.0'))
        16
    """
    if not ip_address and not user_agent:
        return None
    return xxhash.xxh64_hexdigest(f'{ip_address or ""}|{user_agent or ""}'.encode('utf-8'))
