import json

from quickscout.extractors.schemas import Platform
from quickscout.health import HealthMonitor, HealthState


def _events(path):
    return [json.loads(line)["event"] for line in path.read_text(encoding="utf-8").splitlines()]


def test_zero_item_streak_escalates_state(tmp_path) -> None:
    log_path = tmp_path / "logs" / "health.log"
    monitor = HealthMonitor(run_id="test", log_path=log_path, zero_threshold=(2, 3))

    monitor.record_platform(Platform.ZEPTO, count=0)
    assert monitor.state is HealthState.HEALTHY
    monitor.record_platform(Platform.ZEPTO, count=0)
    assert monitor.state is HealthState.SUSPECT
    monitor.record_platform(Platform.ZEPTO, count=0)
    assert monitor.state is HealthState.BLOCKED
    assert monitor.platform_state(Platform.ZEPTO) is HealthState.BLOCKED
    assert monitor.platform_state(Platform.BLINKIT) is HealthState.HEALTHY

    monitor.record_platform(Platform.ZEPTO, count=4)
    assert monitor.state is HealthState.HEALTHY

    events = _events(log_path)
    assert events.count("zero_items") == 3
    assert "recovered" in events
    assert events.count("state_change") == 3


def test_errors_and_location_failures_are_logged(tmp_path) -> None:
    log_path = tmp_path / "health.log"
    monitor = HealthMonitor(run_id="test", log_path=log_path, error_threshold=(1, 2))

    monitor.record_platform(Platform.SWIGGY, count=0, error="timed out after 90s")
    monitor.record_location(Platform.BLINKIT, ok=False)
    monitor.record_location(Platform.BLINKIT, ok=True)

    assert monitor.state is HealthState.SUSPECT
    lines = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert lines[0]["event"] == "storefront_error"
    assert lines[0]["details"]["platform"] == "swiggy"
    assert [line["event"] for line in lines].count("location_failed") == 1
