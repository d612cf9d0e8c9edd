"""
stepwright - Gherkin scenarios driving Playwright page objects and REST APIs
"""

__version__ = "0.1.0"
__author__ = "stepwright contributors"

from .core import ConfigManager, EnvConfig, StepwrightError

__all__ = [
    "ConfigManager",
    "EnvConfig",
    "StepwrightError",
    "__version__",
]
