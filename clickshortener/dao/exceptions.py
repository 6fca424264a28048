"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    LinkRecordNotFoundError:
        Raised when a link record or slug index entry is not found in the data store.

    SlugAlreadyExistsError:
        Raised when a slug is already reserved in the data store.

    DataStoreError:
        Raised on transient data store failures (e.g., connection issues, timeouts).

    DataStoreConfigurationError:
        Raised when the data store rejects a command because of a schema or
        deployment problem (e.g., WRONGTYPE, unknown command). Not retryable.

Example:
    >>> from clickshortener.dao.exceptions import SlugAlreadyExistsError
    >>> raise SlugAlreadyExistsError("Slug 'my-link' is already reserved.")
    Traceback (most recent call last):
        ...
    clickshortener.dao.exceptions.SlugAlreadyExistsError: Slug 'my-link' is already reserved.
"""


class DAOError(Exception):
    """Generic base class for DAO-related exceptions."""

    error_code = 'DATA_STORE_ERROR'


class LinkRecordNotFoundError(DAOError):
    """Exception raised when a link record is not found in the data store."""

    pass


class SlugAlreadyExistsError(DAOError):
    """Exception raised when attempting to reserve a slug that already exists in the data store."""

    pass


class DataStoreError(DAOError):
    """Exception raised when there is a transient error in the data store.

    e.g. connection issues, timeouts, OOM, etc.
    """

    error_code = 'DATA_STORE_UNAVAILABLE'


class DataStoreConfigurationError(DAOError):
    """Exception raised when the data store is misconfigured.

    e.g. a key holds the wrong type, a command is unavailable, etc.
    """

    error_code = 'DATA_STORE_MISCONFIGURED'
