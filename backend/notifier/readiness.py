"""Readiness checks: config, packages, database, optional redis and push gateway."""
import asyncio
import logging

from sqlalchemy import text

logger = logging.getLogger(__name__)

# Result: (passed: bool, message: str)
CheckResult = tuple[bool, str]
ChecksDict = dict[str, CheckResult]

REQUIRED_CHECKS = frozenset({"config", "packages", "database"})


def check_config() -> CheckResult:
    """Load settings and read the keys the pipeline cannot run without."""
    try:
        from notifier.settings import get_settings
        s = get_settings()
        _ = s.app_name
        _ = s.database_url
        if s.push_send_chunk_size <= 0 or s.push_receipt_chunk_size <= 0:
            return False, "push chunk sizes must be positive"
        return True, "ok"
    except Exception as e:
        return False, str(e)


def check_packages() -> CheckResult:
    """Import critical modules: uvicorn, sqlalchemy, httpx, redis, notifier.main."""
    missing = []
    try:
        import uvicorn  # noqa: F401
    except ImportError:
        missing.append("uvicorn")
    try:
        import sqlalchemy  # noqa: F401
    except ImportError:
        missing.append("sqlalchemy")
    try:
        import httpx  # noqa: F401
    except ImportError:
        missing.append("httpx")
    try:
        import redis  # noqa: F401
    except ImportError:
        missing.append("redis")
    try:
        import notifier.main  # noqa: F401
    except ImportError as e:
        missing.append(f"notifier.main ({e})")
    if missing:
        return False, f"missing: {', '.join(missing)}"
    return True, "ok"


async def _check_database_async(database_url: str) -> CheckResult:
    """Run a trivial query against the database."""
    try:
        from notifier.infra.db.base import build_engine
        engine = build_engine(database_url)
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        await engine.dispose()
        return True, "ok"
    except Exception as e:
        return False, str(e)


def check_database() -> CheckResult:
    """Check database connectivity using settings.database_url."""
    try:
        from notifier.settings import get_settings
        return asyncio.run(_check_database_async(get_settings().database_url))
    except Exception as e:
        return False, str(e)


async def _check_redis_async() -> CheckResult:
    """Ping Redis when realtime fan-out is enabled; else skip."""
    try:
        from notifier.settings import get_settings
        s = get_settings()
        if not s.realtime_enabled:
            return True, "skipped (realtime disabled)"
        from notifier.infra.messaging.redis_bus import RedisBus
        bus = RedisBus(s.redis_url)
        try:
            await bus.ping()
        finally:
            await bus.disconnect()
        return True, "ok"
    except Exception as e:
        return False, str(e)


async def _check_push_gateway_async() -> CheckResult:
    """Empty receipts query against the push gateway."""
    try:
        from notifier.infra.push.expo_client import ExpoPushClient
        await ExpoPushClient(timeout=5.0).ping()
        return True, "ok"
    except Exception as e:
        return False, str(e)


def run_all_checks() -> ChecksDict:
    """Run all readiness checks (sync). Returns dict of check_name -> (passed, message)."""
    return asyncio.run(run_all_checks_async())


async def run_all_checks_async() -> ChecksDict:
    """Run all readiness checks (async). Use from async context (e.g. GET /ready) to avoid nested event loop."""
    from notifier.settings import get_settings
    db_result = await _check_database_async(get_settings().database_url)
    return {
        "config": check_config(),
        "packages": check_packages(),
        "database": db_result,
        "redis": await _check_redis_async(),
        "push_gateway": await _check_push_gateway_async(),
    }


def is_ready(checks: ChecksDict | None = None) -> tuple[bool, dict[str, str]]:
    """
    True if all required checks pass. Redis and the push gateway are reported but optional.
    Returns (ready: bool, checks_summary: dict of name -> "ok" | "skipped" | error message).
    """
    if checks is None:
        checks = run_all_checks()
    summary: dict[str, str] = {name: msg for name, (_, msg) in checks.items()}
    all_required = all(checks[n][0] for n in REQUIRED_CHECKS if n in checks)
    return all_required, summary
