import asyncio
import logging
import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from behave.model import Feature, Scenario, Step
from behave.parser import parse_feature
from playwright.async_api import Browser, async_playwright, expect

from ..core.config import EnvConfig
from ..core.constants import TIMEOUT
from ..core.exceptions import AmbiguousStepError, ExecutionError, ScenarioSkipped, UndefinedStepError
from ..steps import build_registry
from ..steps.registry import StepDefinitionRegistry
from .context import FixtureContext
from .report_collector import REPORT_FORMATS, ReportCollector

logger = logging.getLogger(__name__)

PASSED = "passed"
FAILED = "failed"
UNDEFINED = "undefined"
SKIPPED = "skipped"

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")
SKIP_TAG = "skip"


@dataclass
class ExecutorConfig:
    """Configuration for Test Executor"""
    browser: str = "chromium"
    headless: Optional[bool] = None  # None: HEADLESS_MODE decides, headless if unset
    timeout: int = TIMEOUT.LONG
    navigation_timeout: int = TIMEOUT.XLONG
    expect_timeout: int = 45000
    viewport: Dict[str, int] = field(default_factory=lambda: {"width": 1280, "height": 720})
    screenshot_on_failure: bool = True
    screenshot_dir: str = "screenshots"
    video_recording: bool = False
    parallel_workers: int = 4
    tags: List[str] = field(default_factory=list)
    output_dir: str = "test-results"
    report_format: str = "html"
    slow_mo: int = 0

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "ExecutorConfig":
        """Build from a settings mapping, ignoring keys that are not fields"""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})


def _tag_names(scenario: Scenario) -> List[str]:
    return [str(tag) for tag in scenario.effective_tags]


def _safe_name(name: str) -> str:
    return re.sub(r'[^A-Za-z0-9_.-]+', '_', name).strip('_') or "scenario"


class TestExecutor:
    """
    Executes Gherkin feature files with Playwright.

    Scenarios of a feature run concurrently, at most parallel_workers at a
    time, each in its own browser context with its own FixtureContext.
    Steps inside a scenario run strictly in order. A failing scenario never
    stops its siblings.
    """

    __test__ = False

    def __init__(self, config: Optional[Union[Dict, ExecutorConfig]] = None,
                 env_config: Optional[EnvConfig] = None,
                 registry: Optional[StepDefinitionRegistry] = None,
                 environ: Optional[Mapping[str, str]] = None):
        if isinstance(config, dict):
            self.config = ExecutorConfig.from_dict(config)
        else:
            self.config = config or ExecutorConfig()

        self.env_config = env_config or EnvConfig.from_env(environ)
        self.environ = environ
        self.step_registry = registry or build_registry()
        self.report_collector = ReportCollector(self.config.output_dir)

        if not self.validate():
            raise ValueError("Invalid executor configuration")
        logger.debug(f"Test executor ready with {len(self.step_registry.definitions)} step definitions")

    @property
    def headless(self) -> bool:
        if self.config.headless is not None:
            return self.config.headless
        env_headless = self.env_config.headless
        return True if env_headless is None else env_headless

    def list_all_steps(self) -> Dict[str, List[Dict[str, str]]]:
        """Registered step definitions grouped by keyword"""
        grouped: Dict[str, List[Dict[str, str]]] = {}
        for defn in self.step_registry.list_definitions():
            grouped.setdefault(defn['keyword'].upper(), []).append(defn)
        return grouped

    def load_feature(self, feature_path: Union[str, Path]) -> Feature:
        """Parse a feature file"""
        feature_path = Path(feature_path)
        if not feature_path.exists():
            raise ExecutionError(f"Feature file not found: {feature_path}")

        feature = parse_feature(feature_path.read_text(encoding='utf-8'), filename=str(feature_path))
        if feature is None:
            raise ExecutionError(f"No feature found in {feature_path}")
        return feature

    def preview(self, feature_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Execution plan of a feature without running it.

        Every step is resolved against the registry; its status is
        ``defined``, ``undefined`` or ``ambiguous``.
        """
        feature = self.load_feature(feature_path)
        plan = {'feature': feature.name, 'file': str(feature_path), 'scenarios': []}
        for scenario in feature.walk_scenarios():
            steps = []
            for step in scenario.all_steps:
                try:
                    self.step_registry.match(step.name, step.keyword)
                    status = "defined"
                except UndefinedStepError:
                    status = UNDEFINED
                except AmbiguousStepError:
                    status = "ambiguous"
                steps.append({'keyword': step.keyword, 'name': step.name, 'status': status})
            plan['scenarios'].append({
                'name': scenario.name,
                'tags': _tag_names(scenario),
                'selected': self._should_run_scenario(scenario),
                'steps': steps,
            })
        return plan

    async def execute_feature(self, feature_path: Union[str, Path]) -> Dict[str, Any]:
        """Execute a single feature file"""
        feature = self.load_feature(feature_path)

        result = {
            'feature': feature.name,
            'file': str(feature_path),
            'scenarios': [],
            'start_time': datetime.now().isoformat(),
            'status': PASSED
        }

        scenarios = [s for s in feature.walk_scenarios() if self._should_run_scenario(s)]
        if not scenarios:
            logger.info(f"No scenarios selected in {feature_path}")
            result['status'] = SKIPPED
            result['end_time'] = datetime.now().isoformat()
            return result

        expect.set_options(timeout=self.config.expect_timeout)
        semaphore = asyncio.Semaphore(self.config.parallel_workers)

        async with async_playwright() as p:
            browser = await self._launch_browser(p)
            try:
                result['scenarios'] = await asyncio.gather(*(
                    self._execute_scenario(browser, scenario, semaphore)
                    for scenario in scenarios
                ))
            finally:
                await browser.close()

        statuses = {scenario['status'] for scenario in result['scenarios']}
        if FAILED in statuses:
            result['status'] = FAILED
        elif statuses == {SKIPPED}:
            result['status'] = SKIPPED
        result['end_time'] = datetime.now().isoformat()
        return result

    async def _launch_browser(self, playwright) -> Browser:
        """Launch browser with configuration"""
        browser_type = getattr(playwright, self.config.browser)
        return await browser_type.launch(headless=self.headless, slow_mo=self.config.slow_mo)

    def _context_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {'viewport': self.config.viewport}
        if self.config.video_recording:
            options['record_video_dir'] = "videos/"
        # clipboard permissions are chromium only
        if self.config.browser == "chromium":
            options['permissions'] = ["clipboard-read", "clipboard-write"]
        return options

    async def _execute_scenario(self, browser: Browser, scenario: Scenario,
                                semaphore: asyncio.Semaphore) -> Dict[str, Any]:
        """Execute a single scenario in its own browser context"""
        result = {
            'name': scenario.name,
            'tags': _tag_names(scenario),
            'steps': [],
            'status': PASSED,
            'start_time': datetime.now().isoformat()
        }
        steps = list(scenario.all_steps)

        if SKIP_TAG in result['tags']:
            logger.info(f"Skipping scenario '{scenario.name}' (@{SKIP_TAG})")
            result['steps'] = [self._skipped_step(step) for step in steps]
            result['status'] = SKIPPED
            result['skip_reason'] = f"@{SKIP_TAG}"
            result['end_time'] = datetime.now().isoformat()
            return result

        async with semaphore:
            logger.info(f"Scenario started: {scenario.name}")
            browser_context = None
            fixtures = None
            try:
                browser_context = await browser.new_context(**self._context_options())
                browser_context.set_default_timeout(self.config.timeout)
                browser_context.set_default_navigation_timeout(self.config.navigation_timeout)
                page = await browser_context.new_page()
                fixtures = FixtureContext(page, self.env_config, browser_context, self.environ)
                fixtures.prepare(self.step_registry.fixtures_for(step.name for step in steps))
            except Exception as e:
                logger.error(f"Could not set up scenario '{scenario.name}': {e}")
                result['status'] = FAILED
                result['error'] = f"Fixture set-up failed: {e}"
                result['steps'] = [self._skipped_step(step) for step in steps]
                if fixtures is not None:
                    await self._close_fixtures(fixtures, scenario, result)
                elif browser_context is not None:
                    await self._close_fixtures(browser_context, scenario, result)
                result['end_time'] = datetime.now().isoformat()
                return result

            try:
                await self._run_steps(fixtures, steps, result)
                if result['status'] == FAILED and self.config.screenshot_on_failure:
                    await self._take_screenshot(page, scenario, result)
            finally:
                await self._close_fixtures(fixtures, scenario, result)
                result['end_time'] = datetime.now().isoformat()

        logger.info(f"Scenario {result['status']}: {scenario.name}")
        return result

    async def run_steps(self, context: FixtureContext, steps: Iterable[Step]) -> Dict[str, Any]:
        """Run steps against an existing fixture context; returns a scenario result"""
        result = {'steps': [], 'status': PASSED}
        await self._run_steps(context, list(steps), result)
        return result

    async def _run_steps(self, context: FixtureContext, steps: List[Step], result: Dict[str, Any]) -> None:
        halted = False
        for step in steps:
            if halted:
                result['steps'].append(self._skipped_step(step))
                continue

            step_result = await self._execute_step(context, step)
            result['steps'].append(step_result)

            if step_result['status'] == PASSED:
                continue
            halted = True
            if step_result['status'] == SKIPPED:
                result['status'] = SKIPPED
                result['skip_reason'] = step_result.get('error', '')
            else:
                result['status'] = FAILED
                result['error'] = step_result.get('error', '')

    async def _execute_step(self, context: FixtureContext, step: Step) -> Dict[str, Any]:
        """Execute a single step; the outcome is recorded, never raised"""
        step_result = {
            'keyword': step.keyword,
            'name': step.name,
            'status': PASSED,
            'start_time': datetime.now().isoformat()
        }
        context.current_step = step

        try:
            match = self.step_registry.match(step.name, step.keyword)
            await match.execute(context)
        except UndefinedStepError as e:
            step_result['status'] = UNDEFINED
            step_result['error'] = str(e)
        except ScenarioSkipped as e:
            logger.info(f"Step skipped scenario: {step.keyword} {step.name} ({e})")
            step_result['status'] = SKIPPED
            step_result['error'] = str(e)
        except Exception as e:
            logger.error(f"Step failed: {step.keyword} {step.name}: {e}")
            step_result['status'] = FAILED
            step_result['error'] = str(e) or type(e).__name__
        finally:
            step_result['end_time'] = datetime.now().isoformat()

        return step_result

    @staticmethod
    async def _close_fixtures(resource, scenario: Scenario, result: Dict[str, Any]) -> None:
        """Close a FixtureContext or browser context; a failing close fails the scenario"""
        try:
            await resource.close()
        except Exception as e:
            logger.error(f"Could not close scenario '{scenario.name}': {e}")
            result['status'] = FAILED
            if not result.get('error'):
                result['error'] = f"Scenario tear-down failed: {e}"

    @staticmethod
    def _skipped_step(step: Step) -> Dict[str, Any]:
        return {'keyword': step.keyword, 'name': step.name, 'status': SKIPPED}

    async def _take_screenshot(self, page, scenario: Scenario, result: Dict[str, Any]) -> None:
        if page.is_closed():
            return
        screenshot_dir = Path(self.config.screenshot_dir)
        screenshot_dir.mkdir(parents=True, exist_ok=True)
        screenshot_path = screenshot_dir / f"{_safe_name(scenario.name)}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.png"
        try:
            await page.screenshot(path=str(screenshot_path))
            result['screenshot'] = str(screenshot_path)
        except Exception as e:
            logger.warning(f"Could not take screenshot for '{scenario.name}': {e}")

    def _should_run_scenario(self, scenario: Scenario) -> bool:
        """
        Check if scenario should be executed based on tags.

        Plain tags select scenarios having any of them; ``~@tag`` excludes.
        """
        if not self.config.tags:
            return True
        tags = set(_tag_names(scenario))
        include = [t.lstrip('@') for t in self.config.tags if not t.startswith('~')]
        exclude = [t.lstrip('~').lstrip('@') for t in self.config.tags if t.startswith('~')]

        if any(t in tags for t in exclude):
            return False
        return not include or any(t in tags for t in include)

    async def execute_features(self, feature_files: Iterable[Union[str, Path]]) -> Dict[str, Any]:
        """Execute features one after another and aggregate their results"""
        results = {
            'features': [],
            'summary': {'total': 0, 'passed': 0, 'failed': 0, 'skipped': 0},
            'start_time': datetime.now().isoformat()
        }

        for feature_file in feature_files:
            logger.info(f"Executing feature: {feature_file}")
            feature_result = await self.execute_feature(feature_file)
            results['features'].append(feature_result)

            for scenario in feature_result['scenarios']:
                results['summary']['total'] += 1
                results['summary'][scenario['status']] += 1

        results['end_time'] = datetime.now().isoformat()
        return results

    def execute(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute feature files and write the report

        Args:
            input_data: Dict with 'feature_path' or 'feature_dir'

        Returns:
            Execution results, including 'report_path'
        """
        feature_path = input_data.get('feature_path')
        if feature_path:
            results = asyncio.run(self.execute_features([feature_path]))
            return self._finalize(results)
        return self.execute_directory(input_data.get('feature_dir', 'features/'))

    def execute_directory(self, feature_dir: Union[str, Path]) -> Dict[str, Any]:
        """Execute all feature files in a directory"""
        feature_dir = Path(feature_dir)

        if not feature_dir.exists():
            raise ExecutionError(f"Feature directory not found: {feature_dir}")

        feature_files = sorted(feature_dir.glob('**/*.feature'))
        if not feature_files:
            logger.warning(f"No feature files found in {feature_dir}")

        results = asyncio.run(self.execute_features(feature_files))
        return self._finalize(results)

    def _finalize(self, results: Dict[str, Any]) -> Dict[str, Any]:
        results['report_path'] = self.report_collector.generate_report(results, self.config.report_format)
        return results

    def validate(self) -> bool:
        """Validate executor configuration"""
        if self.config.browser not in SUPPORTED_BROWSERS:
            logger.error(f"Unsupported browser: {self.config.browser}")
            return False
        if self.config.parallel_workers < 1:
            logger.error("parallel_workers must be at least 1")
            return False
        if self.config.report_format not in REPORT_FORMATS:
            logger.error(f"Unsupported report format: {self.config.report_format}")
            return False
        return True
