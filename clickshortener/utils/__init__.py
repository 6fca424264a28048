from clickshortener.utils.config import app_env, app_name, project_root, app_prefix, load_config, engine_settings
from clickshortener.utils.helpers import base_url, get_short_url, require_environment, guarantee_500_response, retry_on_transient_error
from clickshortener.utils.shortener import generate_slug, visitor_fingerprint
from clickshortener.utils.validators import normalize_url, normalize_slug, is_valid_slug, parse_timestamp
from clickshortener.utils.client_signal import parse_client_signal
from clickshortener.utils.logging import initialize_logging


__all__ = [
    'generate_slug',
    'visitor_fingerprint',
    'normalize_url',
    'normalize_slug',
    'is_valid_slug',
    'parse_timestamp',
    'parse_client_signal',
    'app_env',
    'app_name',
    'app_prefix',
    'project_root',
    'load_config',
    'engine_settings',
    'base_url',
    'get_short_url',
    'require_environment',
    'guarantee_500_response',
    'retry_on_transient_error',
    'initialize_logging',
]
