"""Lambda runtime and API Gateway event accessors

API Gateway proxy events leave absent sections as `None` rather than
omitting them (`pathParameters`, `queryStringParameters`, `headers`,
`requestContext`), so every accessor here tolerates both.

Functions:
    running_locally() -> bool:
        True under `sam local` (APP_ENV=local or AWS_SAM_LOCAL=true).
    get_user_id(event) -> str | None:
        Cognito 'sub' claim of the caller.
    get_path_parameter(event, name) -> str | None
    get_query_parameters(event) -> dict[str, str]
    get_headers(event) -> dict[str, str]:
        Request headers with lower-cased names.
    get_source_ip(event) -> str | None:
        First X-Forwarded-For hop, falling back to the API Gateway identity.

Example:
    >>> event = {'pathParameters': {'shortcode': 'my-link'}, 'headers': {'User-Agent': 'curl/8.4.0'}}
    >>> get_path_parameter(event, 'shortcode')
    'my-link'
    >>> get_headers(event)['user-agent']
    'curl/8.4.0'
"""

import os

from clickshortener.types import LambdaEvent, Headers, QueryParameters
from clickshortener.utils.constants import APP_ENV_ENV, AWS_SAM_LOCAL_ENV


def running_locally() -> bool:
    if os.getenv(AWS_SAM_LOCAL_ENV) == 'true':
        return True
    return os.getenv(APP_ENV_ENV, '').lower() == 'local'


def _section(event: LambdaEvent, name: str) -> dict:
    return event.get(name) or {}


def get_user_id(event: LambdaEvent) -> str | None:
    """Return the Cognito 'sub' claim of the caller, or None when unauthenticated."""
    authorizer = _section(event, 'requestContext').get('authorizer') or {}
    return (authorizer.get('claims') or {}).get('sub')


def get_path_parameter(event: LambdaEvent, name: str) -> str | None:
    return _section(event, 'pathParameters').get(name) or None


def get_query_parameters(event: LambdaEvent) -> QueryParameters:
    return dict(_section(event, 'queryStringParameters'))


def get_headers(event: LambdaEvent) -> Headers:
    # Header names are case-insensitive; API Gateway keeps the client's casing
    return {name.lower(): value for name, value in _section(event, 'headers').items()}


def get_source_ip(event: LambdaEvent) -> str | None:
    forwarded_for = get_headers(event).get('x-forwarded-for') or ''
    client_ip = forwarded_for.split(',')[0].strip()
    if client_ip:
        return client_ip
    identity = _section(event, 'requestContext').get('identity') or {}
    return identity.get('sourceIp') or None
