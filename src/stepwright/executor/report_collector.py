import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Union

from jinja2 import Environment, select_autoescape

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("html", "json", "junit")

HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>stepwright report - {{ timestamp }}</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 20px; background-color: #f5f5f5; }
        .header { background-color: #333; color: white; padding: 20px; border-radius: 5px; margin-bottom: 20px; }
        .summary { display: flex; gap: 20px; margin-bottom: 30px; }
        .summary-card {
            background: white; padding: 20px; border-radius: 5px;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1); flex: 1; text-align: center;
        }
        .summary-card h3 { margin: 0 0 10px 0; color: #666; }
        .summary-card .number { font-size: 36px; font-weight: bold; }
        .passed { color: #28a745; }
        .failed, .undefined { color: #dc3545; }
        .skipped { color: #b58900; }
        .feature { background: white; margin-bottom: 20px; border-radius: 5px; overflow: hidden; }
        .feature-header { background: #f8f9fa; padding: 15px 20px; cursor: pointer; }
        .feature-header.passed { border-left: 5px solid #28a745; }
        .feature-header.failed { border-left: 5px solid #dc3545; }
        .feature-header.skipped { border-left: 5px solid #ffc107; }
        .scenario { padding: 15px 20px; border-bottom: 1px solid #eee; }
        .scenario-header { display: flex; justify-content: space-between; align-items: center; }
        .status-badge { padding: 4px 8px; border-radius: 3px; font-size: 12px; color: white; }
        .status-badge.passed { background-color: #28a745; }
        .status-badge.failed { background-color: #dc3545; }
        .status-badge.skipped { background-color: #ffc107; }
        .step { margin-left: 20px; padding: 5px 0; font-family: monospace; font-size: 14px; }
        .step.passed::before { content: "\\2713 "; }
        .step.failed::before, .step.undefined::before { content: "\\2717 "; }
        .step.skipped::before { content: "- "; }
        .error { background-color: #f8d7da; color: #721c24; padding: 10px; margin: 10px 0 10px 20px; font-size: 12px; }
        .tag { background-color: #e9ecef; padding: 2px 6px; border-radius: 3px; font-size: 11px; }
    </style>
    <script>
        function toggleFeature(featureId) {
            const content = document.getElementById(featureId);
            content.style.display = content.style.display === 'none' ? 'block' : 'none';
        }
    </script>
</head>
<body>
    <div class="header">
        <h1>Test Execution Report</h1>
        <p>Generated: {{ timestamp }}</p>
        <p>Duration: {{ duration }}</p>
    </div>

    <div class="summary">
        <div class="summary-card"><h3>Scenarios</h3><div class="number">{{ summary.total }}</div></div>
        <div class="summary-card"><h3>Passed</h3><div class="number passed">{{ summary.passed }}</div></div>
        <div class="summary-card"><h3>Failed</h3><div class="number failed">{{ summary.failed }}</div></div>
        <div class="summary-card"><h3>Skipped</h3><div class="number skipped">{{ summary.skipped }}</div></div>
        <div class="summary-card"><h3>Pass Rate</h3><div class="number">{{ pass_rate }}%</div></div>
    </div>

    {% for feature in features %}
    <div class="feature">
        <div class="feature-header {{ feature.status }}" onclick="toggleFeature('feature-{{ loop.index }}')">
            <h2>{{ feature.feature }}</h2>
            <div>{{ feature.file }}</div>
        </div>
        <div id="feature-{{ loop.index }}">
            {% for scenario in feature.scenarios %}
            <div class="scenario">
                <div class="scenario-header">
                    <div>
                        <strong>{{ scenario.name }}</strong>
                        {% for tag in scenario.tags %}<span class="tag">{{ tag }}</span>{% endfor %}
                    </div>
                    <span class="status-badge {{ scenario.status }}">{{ scenario.status|upper }}</span>
                </div>
                {% for step in scenario.steps %}
                <div class="step {{ step.status }}">{{ step.keyword }} {{ step.name }}</div>
                {% if step.error %}<div class="error">{{ step.error }}</div>{% endif %}
                {% endfor %}
                {% if scenario.error and not (scenario.steps|selectattr("error")|list) %}<div class="error">{{ scenario.error }}</div>{% endif %}
            </div>
            {% endfor %}
        </div>
    </div>
    {% endfor %}
</body>
</html>
"""

JUNIT_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<testsuites name="stepwright" time="{{ duration }}" tests="{{ summary.total }}" failures="{{ summary.failed }}" skipped="{{ summary.skipped }}">
{% for feature in features %}
    <testsuite name="{{ feature.feature }}" tests="{{ feature.scenarios|length }}" failures="{{ feature.failures }}" skipped="{{ feature.skipped }}" time="{{ feature.duration }}">
    {% for scenario in feature.scenarios %}
        <testcase classname="{{ feature.feature|replace(' ', '_') }}" name="{{ scenario.name }}" time="{{ scenario.duration }}">
        {% if scenario.status == 'failed' %}
            <failure message="{{ scenario.error|default('Scenario failed') }}">
            {% for step in scenario.steps if step.status in ('failed', 'undefined') %}
{{ step.keyword }} {{ step.name }}: {{ step.error }}
            {% endfor %}
            </failure>
        {% elif scenario.status == 'skipped' %}
            <skipped message="{{ scenario.skip_reason|default('skipped') }}"/>
        {% endif %}
        </testcase>
    {% endfor %}
    </testsuite>
{% endfor %}
</testsuites>
"""


def _seconds_between(start: str, end: str) -> float:
    if not start or not end:
        return 0
    return (datetime.fromisoformat(end) - datetime.fromisoformat(start)).total_seconds()


class ReportCollector:
    """Writes execution results as html, json or junit into output_dir"""

    def __init__(self, output_dir: Union[str, Path] = "test-results"):
        self.output_dir = Path(output_dir)
        self._env = Environment(autoescape=select_autoescape(default=True))

    def generate_report(self, results: Dict[str, Any], format: str = "html") -> str:
        """
        Generate test report in specified format

        Args:
            results: Aggregated execution results (features plus summary)
            format: Report format (html, json, junit)

        Returns:
            Path to generated report
        """
        if format not in REPORT_FORMATS:
            raise ValueError(f"Unsupported report format: {format}")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

        if format == "html":
            return self._generate_html_report(results, timestamp)
        elif format == "json":
            return self._generate_json_report(results, timestamp)
        return self._generate_junit_report(results, timestamp)

    def _generate_html_report(self, results: Dict[str, Any], timestamp: str) -> str:
        summary = results.get('summary', {})
        total = summary.get('total', 0)
        passed = summary.get('passed', 0)
        pass_rate = round((passed / total * 100) if total > 0 else 0, 1)

        html_content = self._env.from_string(HTML_TEMPLATE).render(
            timestamp=timestamp,
            duration=f"{_seconds_between(results.get('start_time'), results.get('end_time')):.1f}s",
            summary=summary,
            pass_rate=pass_rate,
            features=results.get('features', [])
        )

        report_path = self.output_dir / f"report_{timestamp}.html"
        report_path.write_text(html_content, encoding='utf-8')
        logger.info(f"HTML report generated: {report_path}")
        return str(report_path)

    def _generate_json_report(self, results: Dict[str, Any], timestamp: str) -> str:
        report_path = self.output_dir / f"report_{timestamp}.json"
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(results, f, indent=2, default=str)

        logger.info(f"JSON report generated: {report_path}")
        return str(report_path)

    def _generate_junit_report(self, results: Dict[str, Any], timestamp: str) -> str:
        features = []
        for feature in results.get('features', []):
            scenarios = [
                dict(scenario, duration=_seconds_between(scenario.get('start_time'), scenario.get('end_time')))
                for scenario in feature.get('scenarios', [])
            ]
            features.append(dict(
                feature,
                scenarios=scenarios,
                failures=sum(1 for s in scenarios if s.get('status') == 'failed'),
                skipped=sum(1 for s in scenarios if s.get('status') == 'skipped'),
                duration=_seconds_between(feature.get('start_time'), feature.get('end_time')),
            ))

        junit_content = self._env.from_string(JUNIT_TEMPLATE).render(
            duration=_seconds_between(results.get('start_time'), results.get('end_time')),
            summary=results.get('summary', {}),
            features=features
        )

        report_path = self.output_dir / f"report_{timestamp}.xml"
        report_path.write_text(junit_content, encoding='utf-8')
        logger.info(f"JUnit report generated: {report_path}")
        return str(report_path)
