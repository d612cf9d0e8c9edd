import pytest

from stepwright.load.profiles import (
    PROFILES,
    LoadProfile,
    Stage,
    Threshold,
    evaluate_thresholds,
    get_profile,
    parse_duration,
)


class TestParseDuration:
    """Test duration parsing"""

    @pytest.mark.parametrize("value, seconds", [
        ("30s", 30),
        ("2m", 120),
        ("3h", 10800),
        ("1m30s", 90),
        ("500ms", 0.5),
        ("1.5m", 90),
    ])
    def test_valid(self, value, seconds):
        assert parse_duration(value) == pytest.approx(seconds)

    @pytest.mark.parametrize("value", ["", "30", "ten seconds", "5d", "1m 30s"])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="Invalid duration"):
            parse_duration(value)


class TestThreshold:
    """Test threshold expressions"""

    def test_parse_percentile(self):
        threshold = Threshold.parse("p(95)<500")

        assert threshold == Threshold("p(95)", "<", 500.0)
        assert str(threshold) == "p(95)<500"

    def test_parse_rate(self):
        threshold = Threshold.parse("rate <= 0.05")

        assert threshold.evaluate(0.05)
        assert not threshold.evaluate(0.06)
        assert str(threshold) == "rate<=0.05"

    @pytest.mark.parametrize("expression", ["p95<500", "rate<", "avg ~ 3"])
    def test_invalid(self, expression):
        with pytest.raises(ValueError, match="Invalid threshold"):
            Threshold.parse(expression)


class TestLoadProfile:
    """Test profile timing"""

    @pytest.fixture
    def profile(self):
        return LoadProfile("ramp", [Stage("10s", 10), Stage("10s", 10), Stage("10s", 0)])

    def test_totals(self, profile):
        assert profile.total_duration == 30
        assert profile.peak_users == 10

    @pytest.mark.parametrize("elapsed, users", [
        (0, 0),
        (5, 5),
        (12, 10),
        (25, 5),
        (30, None),
    ])
    def test_target_at(self, profile, elapsed, users):
        """Test that each stage ramps linearly from the previous target"""
        assert profile.target_at(elapsed) == users

    def test_builtin_profiles(self):
        assert set(PROFILES) == {"load", "stress", "spike", "soak"}
        assert get_profile("spike").peak_users == 100
        assert get_profile("soak").total_duration == pytest.approx(3 * 3600 + 240)
        assert get_profile("stress").thresholds["http_req_duration"] == ["p(95)<1000"]
        assert get_profile("load").thresholds["errors"] == ["rate<0.1"]

    def test_unknown_profile(self):
        with pytest.raises(KeyError, match="Unknown load profile"):
            get_profile("marathon")


class TestEvaluateThresholds:
    """Test threshold evaluation against run metrics"""

    def test_all_pass(self):
        metrics = {
            "http_req_duration": {"p(95)": 420.0, "p(99)": 800.0},
            "http_req_failed": {"rate": 0.01},
            "errors": {"rate": 0.0},
        }
        assert evaluate_thresholds(get_profile("load"), metrics) == []

    def test_breaches_are_reported(self):
        metrics = {
            "http_req_duration": {"p(95)": 1500.0},
            "http_req_failed": {"rate": 0.2},
        }
        assert evaluate_thresholds(get_profile("stress"), metrics) == [
            "http_req_duration: p(95)<1000",
            "http_req_failed: rate<0.1",
        ]

    def test_missing_metric_is_skipped(self):
        metrics = {"http_req_duration": {"p(95)": 100.0}}
        assert evaluate_thresholds(get_profile("stress"), metrics) == []
