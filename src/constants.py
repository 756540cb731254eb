"""Constants used in the project."""

from enum import Enum


class DependencyBehavior(Enum):
    """Version selection policy applied when several candidates qualify.

    Args:
        Enum (string): Policy names accepted from configuration.
    """

    HIGHEST = "highest"
    LOWEST = "lowest"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    NUGET_SERVICE_INDEX = "https://api.nuget.org/v3/index.json"
    NUGET_REGISTRATION_TYPE = "RegistrationsBaseUrl/3.6.0"
    DEFAULT_PLATFORM = "any"
    DEFAULT_POLICY = DependencyBehavior.HIGHEST
    MAX_WORKERS = 1  # sequential discovery unless overridden
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300

    ENV_LOG_LEVEL = "DEPWALKER_LOG_LEVEL"
    ENV_SERVICE_INDEX = "DEPWALKER_NUGET_SERVICE_INDEX"
    ENV_REQUEST_TIMEOUT = "DEPWALKER_REQUEST_TIMEOUT"
    ENV_MAX_WORKERS = "DEPWALKER_MAX_WORKERS"
    ENV_POLICY = "DEPWALKER_POLICY"
