import importlib.util
import json
import logging
import os
import subprocess
import sys
from pathlib import Path

import click

from . import __version__
from .core import ConfigManager, StepwrightError
from .core.exceptions import NotificationError


@click.group()
@click.option('--config', '-c', type=click.Path(), help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, verbose):
    """stepwright - Gherkin scenarios on Playwright page objects"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config_path = Path(config) if config else None
    ctx.obj = ConfigManager(config_path)


@cli.command()
def version():
    """Show version information"""
    click.echo(f"stepwright v{__version__}")


@cli.group()
def test():
    """Test execution commands"""
    pass


@test.command()
@click.argument('feature_path', required=False)
@click.option('-d', '--directory', default='features/', help='Feature files directory')
@click.option('-b', '--browser', type=click.Choice(['chromium', 'firefox', 'webkit']), help='Browser to use')
@click.option('--headless/--headed', default=None, help='Run in headless mode (default: HEADLESS_MODE)')
@click.option('-p', '--parallel', type=int, help='Number of scenarios run at the same time')
@click.option('-t', '--tags', help='Scenario tags, comma-separated; prefix with ~ to exclude')
@click.option('-r', '--report', type=click.Choice(['html', 'json', 'junit']), help='Report format')
@click.option('--timeout', type=int, help='Default action timeout in milliseconds')
@click.option('--screenshots/--no-screenshots', default=None, help='Take screenshots on failure')
@click.option('--video/--no-video', default=None, help='Record video of test execution')
@click.pass_obj
def run(settings, feature_path, directory, browser, headless, parallel, tags, report, timeout,
        screenshots, video):
    """
    Execute feature files

    Examples:
        stepwright test run features/todo.feature
        stepwright test run -d features/ --headed
        stepwright test run -t @smoke,~@slow -r junit
    """
    from .executor import ExecutorConfig, TestExecutor

    values = dict(settings.get_module_config('executor'))
    values['report_format'] = settings.get('reporter.format', 'html')
    values['output_dir'] = settings.get('reporter.output_dir', 'test-results')

    overrides = {
        'browser': browser,
        'headless': headless,
        'parallel_workers': parallel,
        'tags': [t.strip() for t in tags.split(',') if t.strip()] if tags else None,
        'report_format': report,
        'timeout': timeout,
        'screenshot_on_failure': screenshots,
        'video_recording': video,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        executor = TestExecutor(ExecutorConfig.from_dict(values))
        if feature_path:
            click.echo(f"Executing feature: {feature_path}")
            results = executor.execute({'feature_path': feature_path})
        else:
            click.echo(f"Executing all features in: {directory}")
            results = executor.execute_directory(directory)
    except (StepwrightError, ValueError) as e:
        click.echo(f"Error executing tests: {e}", err=True)
        raise SystemExit(1)

    summary = results.get('summary', {})
    click.echo("\nTest Execution Summary:")
    click.echo(f"  Scenarios: {summary.get('total', 0)}")
    click.echo(f"  Passed: {summary.get('passed', 0)}")
    click.echo(f"  Failed: {summary.get('failed', 0)}")
    click.echo(f"  Skipped: {summary.get('skipped', 0)}")

    if summary.get('failed', 0) > 0:
        click.echo("\nFailed Scenarios:")
        for feature in results.get('features', []):
            for scenario in feature.get('scenarios', []):
                if scenario['status'] == 'failed':
                    click.echo(f"  - {feature['feature']}: {scenario['name']}")
                    if scenario.get('error'):
                        click.echo(f"      Error: {scenario['error']}")

    if 'report_path' in results:
        click.echo(f"\nDetailed report: {results['report_path']}")

    raise SystemExit(0 if summary.get('failed', 0) == 0 else 1)


@test.command('list-steps')
def list_steps():
    """List all available step definitions"""
    from .executor import TestExecutor

    grouped = TestExecutor().list_all_steps()

    click.echo("Available Step Definitions:")
    click.echo("=" * 60)

    for keyword in ['GIVEN', 'WHEN', 'THEN', 'STEP']:
        if keyword in grouped:
            click.echo(f"\n{keyword} Steps:")
            click.echo("-" * 40)
            for defn in grouped[keyword]:
                click.echo(f"  {defn['pattern']}")
                if defn.get('description'):
                    click.echo(f"    {defn['description']}")

    click.echo("\nNote: any step can be written with Given, When, Then, And or But")


@test.command()
@click.argument('feature_file', type=click.Path(exists=True))
@click.option('-t', '--tags', help='Scenario tags, comma-separated; prefix with ~ to exclude')
def preview(feature_file, tags):
    """Preview feature file execution plan and undefined steps"""
    from .executor import ExecutorConfig, TestExecutor

    tag_list = [t.strip() for t in tags.split(',') if t.strip()] if tags else []
    try:
        plan = TestExecutor(ExecutorConfig(tags=tag_list)).preview(feature_file)
    except StepwrightError as e:
        click.echo(f"Error parsing feature file: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Feature: {plan['feature']}")
    problems = 0
    for scenario in plan['scenarios']:
        marker = "" if scenario['selected'] else " (not selected)"
        click.echo(f"\n  Scenario: {scenario['name']}{marker}")
        if scenario['tags']:
            click.echo(f"    Tags: {' '.join('@' + t for t in scenario['tags'])}")
        for step in scenario['steps']:
            flag = "" if step['status'] == 'defined' else f"  <-- {step['status'].upper()}"
            if flag:
                problems += 1
            click.echo(f"    {step['keyword']} {step['name']}{flag}")

    click.echo(f"\nTotal scenarios: {len(plan['scenarios'])}")
    if problems:
        click.echo(f"Steps needing attention: {problems}", err=True)
        raise SystemExit(1)


@cli.group()
def load():
    """Load testing commands"""
    pass


@load.command('show')
@click.argument('profile_name')
def show_profile(profile_name):
    """Show the stages and thresholds of a load profile"""
    from .load import get_profile

    try:
        profile = get_profile(profile_name)
    except KeyError as e:
        click.echo(str(e.args[0]), err=True)
        raise SystemExit(1)

    click.echo(f"Profile: {profile.name} - {profile.description}")
    click.echo(f"Duration: {profile.total_duration:.0f}s, peak users: {profile.peak_users}")
    click.echo("\nStages:")
    for stage in profile.stages:
        click.echo(f"  {stage.duration:>5} -> {stage.target} users")
    click.echo("\nThresholds:")
    for metric, expressions in profile.thresholds.items():
        click.echo(f"  {metric}: {', '.join(expressions)}")


@load.command('run')
@click.argument('profile_name')
@click.option('--host', help='Base URL of the API under load')
@click.pass_obj
def run_profile(settings, profile_name, host):
    """Run a load profile with locust (headless)"""
    from .load import get_profile

    try:
        get_profile(profile_name)
    except KeyError as e:
        click.echo(str(e.args[0]), err=True)
        raise SystemExit(1)

    if importlib.util.find_spec("locust") is None:
        click.echo("Missing dependency: locust", err=True)
        click.echo("Install with: pip install stepwright[load]", err=True)
        raise SystemExit(1)

    locustfile = Path(__file__).parent / "load" / "locustfile.py"
    host = host or os.environ.get("API_BASE_URL") or settings.get('load.host')
    command = [
        sys.executable, "-m", "locust",
        "-f", str(locustfile),
        "--headless",
        "--only-summary",
        "--host", host,
    ]
    env = dict(os.environ, LOAD_PROFILE=profile_name)

    click.echo(f"Running load profile '{profile_name}' against {host}")
    completed = subprocess.run(command, env=env)
    raise SystemExit(completed.returncode)


@cli.group()
def notify():
    """Notification commands"""
    pass


@notify.command('pr')
@click.argument('event_file', required=False, type=click.Path())
def notify_pr(event_file):
    """
    Announce a pull request on Slack

    EVENT_FILE is the GitHub event payload; defaults to GITHUB_EVENT_PATH.
    """
    from .notify import notify_slack_on_pr

    event_file = event_file or os.environ.get("GITHUB_EVENT_PATH")
    if not event_file or not Path(event_file).exists():
        click.echo("No GitHub event payload found (pass EVENT_FILE or set GITHUB_EVENT_PATH)", err=True)
        raise SystemExit(1)

    try:
        with open(event_file, 'r', encoding='utf-8') as f:
            payload = json.load(f)
        notify_slack_on_pr(payload)
    except json.JSONDecodeError as e:
        click.echo(f"Event payload is not valid JSON: {e}", err=True)
        raise SystemExit(1)
    except NotificationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo("Slack notification sent")


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
