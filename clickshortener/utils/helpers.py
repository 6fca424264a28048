"""Cross-cutting helpers for the Lambda handlers

Functions:
    base_url(event) -> str
        Public origin the short links are served from
    get_short_url(slug, event) -> str
        Full short link for a slug, e.g. 'https://sho.rt/my-link'
    require_environment(*names) -> Callable
        Decorator: fail fast when configuration env vars are missing
    guarantee_500_response(handler) -> Callable
        Decorator: turn unhandled handler exceptions into a 500 response
    retry_on_transient_error(exceptions, attempts, backoff) -> Callable
        Decorator: retry a read operation after a transient failure

Example:
    >>> event = {'requestContext': {'domainName': 'abc123.execute-api.eu-central-1.amazonaws.com', 'stage': 'Prod'}}
    >>> get_short_url('my-link', event)
    'https://abc123.execute-api.eu-central-1.amazonaws.com/Prod/my-link'
    >>> get_short_url('my-link', {'requestContext': {'domainName': 'sho.rt', 'stage': 'Prod'}})
    'https://sho.rt/my-link'
"""

import os
import time
import logging
import functools
from collections.abc import Callable

from clickshortener.exceptions import MissingEnvironmentVariableError
from clickshortener.types import LambdaEvent
from clickshortener.utils.runtime import running_locally
from clickshortener.utils.responses import response_500
from clickshortener.utils.constants import (
    UNKNOWN_INTERNAL_SERVER_ERROR,
    TRANSIENT_RETRY_ATTEMPTS,
    TRANSIENT_RETRY_BACKOFF_SECONDS,
)


logger = logging.getLogger(__name__)

# `sam local start-api` default
LOCAL_BASE_URL = 'http://localhost:3000'


def base_url(event: LambdaEvent) -> str:
    """Return the public origin of the API that received `event`

    Requests through a custom domain (the short link domain) are served from
    its root. Requests to the generated execute-api domain need the stage
    segment. Events without a domain come from local invocations.
    """
    request_context = event.get('requestContext') or {}
    domain = request_context.get('domainName')
    if not domain:
        return LOCAL_BASE_URL
    if 'execute-api' in domain:
        return f"https://{domain}/{request_context.get('stage', '')}"
    return f'https://{domain}'


def get_short_url(slug: str, event: LambdaEvent) -> str:
    return f"{base_url(event).rstrip('/')}/{slug}"


def require_environment(*names: str) -> Callable:
    """Decorator: raise MissingEnvironmentVariableError unless every `names` env var is non-empty

    The check runs on each call, not at decoration time, so handler modules
    import cleanly before their environment is configured.

    Example:
        >>> @require_environment('APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID')
        ... def fetch_document(): ...
        >>> fetch_document()
        MissingEnvironmentVariableError: Missing required environment variables: 'APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID'
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            unset = [f"'{name}'" for name in names if not os.environ.get(name)]
            if unset:
                raise MissingEnvironmentVariableError(f"Missing required environment variables: {', '.join(unset)}")
            return func(*args, **kwargs)

        return wrapper

    return decorator


def guarantee_500_response(handler: Callable) -> Callable:
    """Decorator: respond with 500 instead of crashing on unhandled exceptions

    When running locally, the original exception is re-raised so it shows up
    in the SAM console. Exceptions carrying an `error_code` (e.g. data store
    failures) report it; anything else reports UNKNOWN_INTERNAL_SERVER_ERROR.
    """

    @functools.wraps(handler)
    def wrapper(event, context, *args, **kwargs):
        try:
            return handler(event, context, *args, **kwargs)
        except Exception as e:
            if running_locally():
                raise
            error_code = getattr(e, 'error_code', UNKNOWN_INTERNAL_SERVER_ERROR)
            logger.exception('Unhandled exception in lambda handler. Responding with 500.', extra={'event': error_code})
            return response_500(error_code=error_code)

    return wrapper


def retry_on_transient_error(
    exceptions: tuple[type[Exception], ...],
    attempts: int = TRANSIENT_RETRY_ATTEMPTS,
    backoff: float = TRANSIENT_RETRY_BACKOFF_SECONDS,
) -> Callable:
    """Decorator: retry a call after a transient failure

    The first call is always made; up to `attempts` retries follow, each after
    sleeping `backoff * 2**n` seconds. The last exception propagates.

    Args:
        exceptions (tuple[type[Exception], ...]):
            Exception types considered transient.
        attempts (int):
            Number of retries after the first failure. Defaults to 1.
        backoff (float):
            Base backoff in seconds.

    Example:
        >>> @retry_on_transient_error((DataStoreError,))
        ... def lookup(slug):
        ...     return dao.find_by_slug(slug)
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for retry in range(attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if retry == attempts:
                        raise
                    delay = backoff * 2**retry
                    logger.warning(
                        'Transient error in %s, retrying in %.2fs.',
                        func.__qualname__,
                        delay,
                        extra={'error': str(e), 'retry': retry + 1},
                    )
                    time.sleep(delay)

        return wrapper

    return decorator
