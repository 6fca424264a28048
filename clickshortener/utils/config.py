"""Application environment and AWS AppConfig access

All four lambdas read one AppConfig JSON document (profile `backend-config`)
deployed to the AppConfig environment named after `APP_ENV`:

    {
        "build": 7,
        "active_backend": "redis",
        "configs": {
            "shorten_url":    {"redis": {...}, "engine": {"slug_length": 6, "max_allocation_attempts": 5}},
            "redirect_url":   {"redis": {...}},
            "link_analytics": {"redis": {...}},
            "manage_links":   {"redis": {...}}
        }
    }

`load_config(lambda_name)` returns the lambda's slice of it: the active
backend's section plus `engine` when present, e.g. `{"redis": {...}}`.
Under `sam local` the document comes from the AppConfig Agent container
at APPCONFIG_AGENT_URL instead of the AppConfig Data API.

Redis keys of every environment are namespaced by `app_prefix()`
(`<APP_NAME>:<APP_ENV>`), so several environments can share a database.
"""

import os
import json
import functools
import urllib.parse
import urllib.request
import logging
from pathlib import Path
from collections.abc import Callable

import boto3

from clickshortener.exceptions import BadConfigurationError
from clickshortener.types import LambdaConfiguration
from clickshortener.utils.helpers import require_environment
from clickshortener.utils.runtime import running_locally
from clickshortener.utils.constants import (
    APP_ENV_ENV,
    APP_NAME_ENV,
    PROJECT_ROOT_ENV,
    APPCONFIG_APP_ID_ENV,
    APPCONFIG_ENV_ID_ENV,
    APPCONFIG_PROFILE_ID_ENV,
    APPCONFIG_AGENT_URL_ENV,
    APPCONFIG_PROFILE_NAME_ENV,
    DEFAULT_SLUG_LENGTH,
    DEFAULT_MAX_ALLOCATION_ATTEMPTS,
    SLUG_MIN_LENGTH,
    SLUG_MAX_LENGTH,
)


logger = logging.getLogger(__name__)

DEFAULT_PROFILE_NAME = 'backend-config'

# The agent is only ever trusted on the developer's machine
LOCAL_AGENT_HOSTS = frozenset({'localhost', '127.0.0.1', 'host.docker.internal'})
LOCAL_AGENT_PORTS = frozenset({2772, None})
LOCAL_AGENT_TIMEOUT_SECONDS = 5


def app_env() -> str:
    """Return APP_ENV lower-cased, 'local' when unset"""
    return os.environ.get(APP_ENV_ENV, 'local').lower()


def app_name() -> str | None:
    return os.environ.get(APP_NAME_ENV)


def project_root() -> Path:
    """Return PROJECT_ROOT, falling back to this package's directory"""
    return Path(os.environ.get(PROJECT_ROOT_ENV, os.path.dirname(__file__)))


def app_prefix() -> str | None:
    """Return the Redis key namespace `<app name>:<app env>`, or None without APP_NAME

    Example:
        >>> os.environ['APP_NAME'], os.environ['APP_ENV'] = 'clickshortener', 'dev'
        >>> app_prefix()
        'clickshortener:dev'
    """
    name = app_name()
    return None if name is None else f'{name}:{app_env()}'


def _lambda_section(document: dict, lambda_name: str) -> LambdaConfiguration:
    try:
        backend = document['active_backend']
        section = document['configs'][lambda_name]
        config = {backend: section[backend]}
    except KeyError as e:
        raise BadConfigurationError(f'AppConfig document has no {e} section for lambda {lambda_name!r}.') from e

    if 'engine' in section:
        config['engine'] = section['engine']
    logger.debug('Loaded AppConfig.', extra={'lambdaName': lambda_name, 'build': document.get('build'), 'backend': backend})
    return config


def _local_agent_url() -> str | None:
    """Return APPCONFIG_AGENT_URL if it points at a local agent

    Raises:
        BadConfigurationError:
            If the URL is set but not an http(s) URL on a local host and the agent port.
    """
    url = os.getenv(APPCONFIG_AGENT_URL_ENV)
    if not url:
        return None

    components = urllib.parse.urlparse(url)
    if components.scheme not in {'http', 'https'} or components.hostname not in LOCAL_AGENT_HOSTS or components.port not in LOCAL_AGENT_PORTS:
        raise BadConfigurationError(f'{APPCONFIG_AGENT_URL_ENV} must point at a local AppConfig agent (given value: {url!r}).')
    return url.rstrip('/')


def _prefer_local_agent(func: Callable[[str], LambdaConfiguration]) -> Callable[[str], LambdaConfiguration]:
    """Decorator: under `sam local`, read the document from the local AppConfig agent"""

    @functools.wraps(func)
    def wrapper(lambda_name: str) -> LambdaConfiguration:
        agent_url = _local_agent_url() if running_locally() else None
        if agent_url is None:
            return func(lambda_name)

        profile_name = os.getenv(APPCONFIG_PROFILE_NAME_ENV, DEFAULT_PROFILE_NAME)
        url = f'{agent_url}/applications/{app_name()}/environments/{app_env()}/configurations/{profile_name}'
        logger.debug('Fetching AppConfig from local agent.', extra={'agentUrl': url, 'lambdaName': lambda_name})
        with urllib.request.urlopen(url, timeout=LOCAL_AGENT_TIMEOUT_SECONDS) as response:  # noqa: S310
            return _lambda_section(json.load(response), lambda_name)

    return wrapper


@_prefer_local_agent
@require_environment(APPCONFIG_APP_ID_ENV, APPCONFIG_ENV_ID_ENV, APPCONFIG_PROFILE_ID_ENV)
def load_config(lambda_name: str) -> LambdaConfiguration:
    """Fetch the AppConfig document and return the section of `lambda_name`

    Args:
        lambda_name (str):
            One of 'shorten_url', 'redirect_url', 'link_analytics', 'manage_links'.

    Returns:
        LambdaConfiguration: `{backend: {...}}`, plus `engine` when configured.

    Raises:
        MissingEnvironmentVariableError:
            If APPCONFIG_APP_ID, APPCONFIG_ENV_ID or APPCONFIG_PROFILE_ID is unset.
        BadConfigurationError:
            If the document has no section for the lambda or its backend.
        botocore.exceptions.ClientError:
            If AppConfig rejects the request.
    """
    client = boto3.client('appconfigdata')
    session = client.start_configuration_session(
        ApplicationIdentifier=os.environ[APPCONFIG_APP_ID_ENV],
        EnvironmentIdentifier=os.environ[APPCONFIG_ENV_ID_ENV],
        ConfigurationProfileIdentifier=os.environ[APPCONFIG_PROFILE_ID_ENV],
    )
    latest = client.get_latest_configuration(ConfigurationToken=session['InitialConfigurationToken'])
    document = json.loads(latest['Configuration'].read().decode('utf-8'))
    return _lambda_section(document, lambda_name)


def engine_settings(app_config: LambdaConfiguration) -> dict:
    """Return LinkService tunables from a lambda config, defaults filled in

    Raises:
        BadConfigurationError:
            If slug_length is outside the slug length rules or
            max_allocation_attempts is not positive.

    Example:
        >>> engine_settings({'redis': {}, 'engine': {'slug_length': 8}})
        {'slug_length': 8, 'max_allocation_attempts': 5}
    """
    engine = app_config.get('engine') or {}
    slug_length = int(engine.get('slug_length', DEFAULT_SLUG_LENGTH))
    max_attempts = int(engine.get('max_allocation_attempts', DEFAULT_MAX_ALLOCATION_ATTEMPTS))

    if not SLUG_MIN_LENGTH <= slug_length <= SLUG_MAX_LENGTH:
        raise BadConfigurationError(f'slug_length must be within [{SLUG_MIN_LENGTH}, {SLUG_MAX_LENGTH}] (given value: {slug_length}).')
    if max_attempts < 1:
        raise BadConfigurationError(f'max_allocation_attempts must be positive (given value: {max_attempts}).')
    return {'slug_length': slug_length, 'max_allocation_attempts': max_attempts}
