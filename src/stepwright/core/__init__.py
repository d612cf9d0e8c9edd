from .config import ConfigManager, EnvConfig
from .constants import (
    ENV_KEYS,
    TIMEOUT,
    DATA_PREFIX,
    DATA_DIR,
    DATA_PATHS,
    PAGE_PATH,
    API_ENDPOINTS,
)
from .exceptions import (
    StepwrightError,
    ConfigurationError,
    TestDataNameUnknownError,
    DataLoadError,
    PageNotFoundError,
    ValidationError,
    StepDefinitionError,
    AmbiguousStepError,
    UndefinedStepError,
    RegistryFrozenError,
    ExecutionError,
    ScenarioSkipped,
    RateLimitedError,
    NotificationError,
)

__all__ = [
    # Configuration
    "ConfigManager",
    "EnvConfig",

    # Constants
    "ENV_KEYS",
    "TIMEOUT",
    "DATA_PREFIX",
    "DATA_DIR",
    "DATA_PATHS",
    "PAGE_PATH",
    "API_ENDPOINTS",

    # Exceptions
    "StepwrightError",
    "ConfigurationError",
    "TestDataNameUnknownError",
    "DataLoadError",
    "PageNotFoundError",
    "ValidationError",
    "StepDefinitionError",
    "AmbiguousStepError",
    "UndefinedStepError",
    "RegistryFrozenError",
    "ExecutionError",
    "ScenarioSkipped",
    "RateLimitedError",
    "NotificationError",
]
