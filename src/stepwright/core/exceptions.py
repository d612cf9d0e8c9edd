class StepwrightError(Exception):
    """Base exception for stepwright"""
    pass


class ConfigurationError(StepwrightError):
    """Configuration-related errors"""
    pass


class TestDataNameUnknownError(ConfigurationError):
    """Requested test data name is not declared in DATA_PATHS"""

    __test__ = False

    def __init__(self, name: str):
        super().__init__(f"Unknown test data name: {name}")
        self.data_name = name


class DataLoadError(ConfigurationError):
    """Test data could not be read or decoded"""
    pass


class PageNotFoundError(StepwrightError):
    """No page object registered under the requested fixture key"""

    def __init__(self, page_name: str, available=None):
        self.page_name = page_name
        self.available = list(available or [])
        message = f"No page object found for fixture key: {page_name}"
        if self.available:
            message += f"\nAvailable: {', '.join(self.available)}"
        super().__init__(message)


class ValidationError(StepwrightError):
    """Response or data validation failed"""

    def __init__(self, message: str):
        super().__init__(f"Validation failed: {message}")


class StepDefinitionError(StepwrightError):
    """Step registry errors"""
    pass


class AmbiguousStepError(StepDefinitionError):
    """A step expression is claimed by more than one handler"""
    pass


class UndefinedStepError(StepDefinitionError):
    """No step definition matches the step text"""
    pass


class RegistryFrozenError(StepDefinitionError):
    """Registration attempted after the registry was frozen"""
    pass


class ExecutionError(StepwrightError):
    """Error during test execution"""
    pass


class ScenarioSkipped(StepwrightError):
    """Raised from a step to report the running scenario as skipped"""
    pass


class RateLimitedError(ScenarioSkipped):
    """Third-party test API answered with HTTP 429"""
    pass


class NotificationError(StepwrightError):
    """Webhook notification could not be delivered"""
    pass
