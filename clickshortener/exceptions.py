"""Application-level exceptions raised by the link engine.

Every exception carries a class-level `error_code` which the Lambda handlers
forward to API clients, so each failure kind stays distinguishable at the
HTTP boundary.

Hierarchy:
    ClickShortenerError
    ├── ValidationError
    │   ├── InvalidURLError
    │   ├── InvalidSlugError
    │   └── InvalidTimestampError
    ├── ConflictError
    │   ├── SlugTakenError
    │   └── AllocationExhaustedError
    ├── ResolutionError
    │   ├── LinkNotFoundError
    │   ├── LinkDisabledError
    │   └── LinkExpiredError
    └── ConfigurationError
        ├── MissingEnvironmentVariableError
        └── BadConfigurationError
"""


class ClickShortenerError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:clickshortener_error'


class ValidationError(ClickShortenerError):
    """Base exception for rejected user input."""

    error_code = 'validation:validation_error'


class InvalidURLError(ValidationError):
    """Raised when a target URL is not an absolute http(s) URL."""

    error_code = 'INVALID_URL'


class InvalidSlugError(ValidationError):
    """Raised when a slug violates the charset or length rules."""

    error_code = 'INVALID_SLUG'


class InvalidTimestampError(ValidationError):
    """Raised when a timestamp is not in ISO 8601 format."""

    error_code = 'INVALID_TIMESTAMP'


class ConflictError(ClickShortenerError):
    """Base exception for slug namespace conflicts."""

    error_code = 'conflict:conflict_error'


class SlugTakenError(ConflictError):
    """Raised when a requested slug is already reserved by another link."""

    error_code = 'SLUG_TAKEN'


class AllocationExhaustedError(ConflictError):
    """Raised when no free generated slug was found within the attempt limit."""

    error_code = 'SLUG_ALLOCATION_EXHAUSTED'


class ResolutionError(ClickShortenerError):
    """Base exception for terminal resolution states.

    Attributes:
        link (LinkModel | None):
            The matched link, if any. Disabled and expired links keep their
            metadata here so callers can display it without following the target.
    """

    error_code = 'resolution:resolution_error'

    def __init__(self, message: str = '', link=None):
        super().__init__(message)
        self.link = link


class LinkNotFoundError(ResolutionError):
    """Raised when no live link matches the slug or id."""

    error_code = 'LINK_NOT_FOUND'


class LinkDisabledError(ResolutionError):
    """Raised when the owner has deactivated the link."""

    error_code = 'LINK_DISABLED'


class LinkExpiredError(ResolutionError):
    """Raised when the link's expiry time has passed."""

    error_code = 'LINK_EXPIRED'


class ConfigurationError(ClickShortenerError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class MissingEnvironmentVariableError(ConfigurationError):
    """Raised when a required environment variable is missing."""

    error_code = 'config:missing_environment_variable_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'
