# Slug allocation defaults
DEFAULT_SLUG_LENGTH = 6
DEFAULT_MAX_ALLOCATION_ATTEMPTS = 5
SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 30

# Transient data store errors are retried once for read operations
TRANSIENT_RETRY_ATTEMPTS = 1
TRANSIENT_RETRY_BACKOFF_SECONDS = 0.05

# Background click recording pool size
CLICK_RECORDER_MAX_WORKERS = 4

# Placeholder values for click events
UNKNOWN = 'Unknown'
DIRECT_REFERRER = 'Direct'

# Application environment
APP_ENV_ENV = 'APP_ENV'
APP_NAME_ENV = 'APP_NAME'
PROJECT_ROOT_ENV = 'PROJECT_ROOT'
AWS_SAM_LOCAL_ENV = 'AWS_SAM_LOCAL'
LOG_LEVEL_ENV = 'LOG_LEVEL'

# AppConfig: identifiers of the application, environment and configuration profile
APPCONFIG_APP_ID_ENV = 'APPCONFIG_APP_ID'
APPCONFIG_ENV_ID_ENV = 'APPCONFIG_ENV_ID'
APPCONFIG_PROFILE_ID_ENV = 'APPCONFIG_PROFILE_ID'

# AppConfig: local agent used under SAM
APPCONFIG_AGENT_URL_ENV = 'APPCONFIG_AGENT_URL'
APPCONFIG_PROFILE_NAME_ENV = 'APPCONFIG_PROFILE_NAME'

# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'
