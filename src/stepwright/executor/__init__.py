"""
Test Executor Module
Executes Gherkin feature files against Playwright page objects
"""

from .context import FixtureContext, PAGE_OBJECTS, get_page_from_fixtures
from .executor import TestExecutor, ExecutorConfig, PASSED, FAILED, UNDEFINED, SKIPPED
from .report_collector import ReportCollector

__all__ = [
    'TestExecutor',
    'ExecutorConfig',
    'FixtureContext',
    'PAGE_OBJECTS',
    'get_page_from_fixtures',
    'ReportCollector',
    'PASSED',
    'FAILED',
    'UNDEFINED',
    'SKIPPED',
]
