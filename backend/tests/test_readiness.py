"""Readiness tests. Config and packages are required; database, Redis and the push gateway may be unavailable."""
import pytest

from notifier.readiness import check_config, check_packages, is_ready, run_all_checks


def test_config_and_packages_pass():
    assert check_config() == (True, "ok")
    ok, msg = check_packages()
    assert ok, msg


def test_is_ready_needs_required_checks_only():
    checks = {
        "config": (True, "ok"),
        "packages": (True, "ok"),
        "database": (True, "ok"),
        "redis": (True, "skipped (realtime disabled)"),
        "push_gateway": (False, "timeout"),
    }
    ready, summary = is_ready(checks)

    assert ready is True
    assert summary["push_gateway"] == "timeout"
    assert summary["redis"] == "skipped (realtime disabled)"


def test_database_failure_is_not_ready():
    checks = {"config": (True, "ok"), "packages": (True, "ok"), "database": (False, "connection refused")}
    ready, summary = is_ready(checks)

    assert ready is False
    assert summary["database"] == "connection refused"


@pytest.mark.integration
def test_readiness_all_checks_pass():
    """Config and packages must pass; database/Redis/push gateway may be unavailable (e.g. sandbox)."""
    checks = run_all_checks()
    for name in ("config", "packages"):
        ok, msg = checks.get(name, (False, "missing"))
        assert ok, f"readiness {name}: {msg}"


async def test_health_endpoint(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
