"""Slug allocation over the global slug namespace

The registry never checks for a free slug and then writes it: every
candidate goes straight to the Link Store's atomic insert, which reserves the
slug and persists the link record in one unit. A conflicting insert is the
only signal that a slug is taken.

Classes:
    SlugRegistry:
        Allocate generated slugs, reserve custom ones and re-reserve edited ones.

Example:
    >>> registry = SlugRegistry(link_dao)
    >>> registry.allocate(draft_link, custom_slug='My-Link').slug
    'my-link'
    >>> registry.allocate(draft_link, custom_slug='my-link')
    Traceback (most recent call last):
        ...
    clickshortener.exceptions.SlugTakenError: Slug 'my-link' is already taken.
"""

import logging
from dataclasses import replace
from collections.abc import Callable

from clickshortener.models import LinkModel
from clickshortener.dao.base import LinkBaseDAO
from clickshortener.dao.exceptions import SlugAlreadyExistsError
from clickshortener.exceptions import SlugTakenError, AllocationExhaustedError
from clickshortener.utils.shortener import generate_slug
from clickshortener.utils.validators import normalize_slug
from clickshortener.utils.constants import DEFAULT_SLUG_LENGTH, DEFAULT_MAX_ALLOCATION_ATTEMPTS


logger = logging.getLogger(__name__)


class SlugRegistry:
    """Owner of slug allocation

    Attributes:
        link_dao (LinkBaseDAO):
            Link Store enforcing slug uniqueness.
        slug_length (int):
            Length of generated slugs.
        max_attempts (int):
            Generated candidates tried before giving up.
        generator (Callable[[int], str]):
            Candidate generator, `generate_slug` by default.
    """

    def __init__(
        self,
        link_dao: LinkBaseDAO,
        slug_length: int = DEFAULT_SLUG_LENGTH,
        max_attempts: int = DEFAULT_MAX_ALLOCATION_ATTEMPTS,
        generator: Callable[[int], str] = generate_slug,
    ):
        self.link_dao = link_dao
        self.slug_length = slug_length
        self.max_attempts = max_attempts
        self.generator = generator

    def allocate(self, draft: LinkModel, custom_slug: str | None = None) -> LinkModel:
        """Assign a slug to a draft link and persist it

        Args:
            draft (LinkModel):
                Link to persist. Its `slug` and `custom_slug` are overwritten.
            custom_slug (str | None):
                Slug requested by the owner. Case-folded and validated before
                any write.

        Returns:
            LinkModel: the persisted link.

        Raises:
            InvalidSlugError:
                If the custom slug violates the charset or length rules.
            SlugTakenError:
                If the custom slug is already reserved.
            AllocationExhaustedError:
                If every generated candidate collided.
        """
        if custom_slug is not None:
            return self._reserve_custom(draft, normalize_slug(custom_slug))

        for attempt in range(1, self.max_attempts + 1):
            link = replace(draft, slug=self.generator(self.slug_length), custom_slug=None)
            try:
                self.link_dao.insert(link)
            except SlugAlreadyExistsError:
                logger.debug('Generated slug collided, retrying.', extra={'slug': link.slug, 'attempt': attempt})
            else:
                return link

        logger.warning(
            'Slug allocation exhausted after %s attempts.',
            self.max_attempts,
            extra={'event': AllocationExhaustedError.error_code, 'slugLength': self.slug_length},
        )
        raise AllocationExhaustedError(f'Could not allocate a free slug after {self.max_attempts} attempts.')

    def _reserve_custom(self, draft: LinkModel, slug: str) -> LinkModel:
        link = replace(draft, slug=slug, custom_slug=slug)
        try:
            self.link_dao.insert(link)
        except SlugAlreadyExistsError as e:
            raise SlugTakenError(f"Slug '{slug}' is already taken.") from e
        return link

    def reassign(self, link_id: str, new_slug: str) -> LinkModel:
        """Move a link to a new primary slug chosen by its owner

        Raises:
            InvalidSlugError:
                If the new slug violates the charset or length rules.
            SlugTakenError:
                If the new slug is held by another link.
        """
        slug = normalize_slug(new_slug)
        try:
            return self.link_dao.change_slug(link_id, slug)
        except SlugAlreadyExistsError as e:
            raise SlugTakenError(f"Slug '{slug}' is already taken.") from e
