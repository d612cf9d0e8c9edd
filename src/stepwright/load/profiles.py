"""
Declarative load profiles.

A profile is a list of stages (ramp to ``target`` users over ``duration``)
plus k6-style thresholds such as ``p(95)<500``. Profiles carry no locust
dependency; ``stepwright.load.locustfile`` executes them.
"""
import logging
import operator
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|h|m|s)')
_UNIT_SECONDS = {'ms': 0.001, 's': 1, 'm': 60, 'h': 3600}

_THRESHOLD = re.compile(r'^\s*([a-z]+(?:\(\d+(?:\.\d+)?\))?)\s*(<=|>=|==|!=|<|>)\s*(-?\d+(?:\.\d+)?)\s*$')
_OPERATORS = {
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
    '==': operator.eq,
    '!=': operator.ne,
}


def parse_duration(value: str) -> float:
    """
    Convert a duration such as ``30s``, ``2m``, ``3h`` or ``1m30s`` to seconds.
    """
    text = value.strip()
    parts = _DURATION_PART.findall(text)
    if not parts or ''.join(n + u for n, u in parts) != text:
        raise ValueError(f"Invalid duration: {value!r}")
    return sum(float(number) * _UNIT_SECONDS[unit] for number, unit in parts)


@dataclass(frozen=True)
class Stage:
    duration: str
    target: int

    @property
    def seconds(self) -> float:
        return parse_duration(self.duration)


@dataclass(frozen=True)
class Threshold:
    """One threshold expression, e.g. ``p(95)<500`` or ``rate<0.05``"""
    aggregation: str
    op: str
    value: float

    @classmethod
    def parse(cls, expression: str) -> "Threshold":
        match = _THRESHOLD.match(expression)
        if not match:
            raise ValueError(f"Invalid threshold expression: {expression!r}")
        aggregation, op, value = match.groups()
        return cls(aggregation, op, float(value))

    def evaluate(self, actual: float) -> bool:
        """True when actual satisfies the threshold"""
        return _OPERATORS[self.op](actual, self.value)

    def __str__(self):
        value = int(self.value) if self.value.is_integer() else self.value
        return f"{self.aggregation}{self.op}{value}"


@dataclass(frozen=True)
class LoadProfile:
    name: str
    stages: List[Stage]
    thresholds: Dict[str, List[str]] = field(default_factory=dict)
    description: str = ""

    @property
    def total_duration(self) -> float:
        return sum(stage.seconds for stage in self.stages)

    @property
    def peak_users(self) -> int:
        return max((stage.target for stage in self.stages), default=0)

    def target_at(self, elapsed: float) -> Optional[int]:
        """
        Number of users that should be running elapsed seconds into the test.

        Each stage ramps linearly from the previous stage's target (0 before
        the first stage) to its own. Returns None once every stage is over.
        """
        start_users = 0
        stage_start = 0.0
        for stage in self.stages:
            seconds = stage.seconds
            if elapsed < stage_start + seconds:
                progress = (elapsed - stage_start) / seconds if seconds else 1
                return round(start_users + (stage.target - start_users) * progress)
            start_users = stage.target
            stage_start += seconds
        return None


def evaluate_thresholds(profile: LoadProfile, metrics: Mapping[str, Mapping[str, float]]) -> List[str]:
    """
    Check metrics against the profile's thresholds.

    Args:
        profile: Profile whose thresholds apply
        metrics: Metric name to aggregated values, e.g.
            ``{"http_req_duration": {"p(95)": 420.0}, "http_req_failed": {"rate": 0.01}}``

    Returns:
        The breached thresholds as ``metric: expression``; empty when all pass
    """
    breached = []
    for metric, expressions in profile.thresholds.items():
        for expression in expressions:
            threshold = Threshold.parse(expression)
            actual = metrics.get(metric, {}).get(threshold.aggregation)
            if actual is None:
                logger.warning(f"No data for threshold {metric}: {expression}")
                continue
            if not threshold.evaluate(actual):
                logger.error(f"Threshold breached {metric}: {expression} (actual {actual})")
                breached.append(f"{metric}: {expression}")
    return breached


DEFAULT_THRESHOLDS = {
    "http_req_duration": ["p(95)<500", "p(99)<1000"],
    "http_req_failed": ["rate<0.05"],
}

PROFILES: Dict[str, LoadProfile] = {
    "load": LoadProfile(
        name="load",
        description="Ramp to 10 then 50 users",
        stages=[
            Stage("30s", 10),
            Stage("1m", 10),
            Stage("30s", 50),
            Stage("2m", 50),
            Stage("30s", 0),
        ],
        thresholds={**DEFAULT_THRESHOLDS, "errors": ["rate<0.1"]},
    ),
    "stress": LoadProfile(
        name="stress",
        description="Step up to 100 users, beyond normal capacity",
        stages=[
            Stage("1m", 20),
            Stage("2m", 20),
            Stage("1m", 50),
            Stage("2m", 50),
            Stage("1m", 100),
            Stage("3m", 100),
            Stage("1m", 0),
        ],
        thresholds={
            "http_req_duration": ["p(95)<1000"],
            "http_req_failed": ["rate<0.1"],
        },
    ),
    "spike": LoadProfile(
        name="spike",
        description="Sudden jump from 10 to 100 users and back",
        stages=[
            Stage("10s", 10),
            Stage("20s", 10),
            Stage("10s", 100),
            Stage("1m", 100),
            Stage("10s", 10),
            Stage("20s", 10),
            Stage("10s", 0),
        ],
        thresholds={
            "http_req_duration": ["p(95)<2000"],
            "http_req_failed": ["rate<0.15"],
        },
    ),
    "soak": LoadProfile(
        name="soak",
        description="Moderate load held for three hours",
        stages=[
            Stage("2m", 20),
            Stage("3h", 20),
            Stage("2m", 0),
        ],
        thresholds=dict(DEFAULT_THRESHOLDS),
    ),
}


def get_profile(name: str) -> LoadProfile:
    if name not in PROFILES:
        raise KeyError(f"Unknown load profile: {name}. Available: {', '.join(PROFILES)}")
    return PROFILES[name]
