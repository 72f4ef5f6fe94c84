# storefront/api/v1/routers/health.py
import time
import subprocess
from fastapi import APIRouter
from storefront.core.config import get_settings
from storefront.db import mongo
from storefront.db.redis import get_redis

router = APIRouter(tags=["health"])
START_TIME = time.time()


def _git_sha(short: bool = True) -> str:
    try:
        cmd = ["git", "rev-parse", "--short" if short else "HEAD"]
        return subprocess.check_output(cmd, stderr=subprocess.DEVNULL).decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


@router.get("/health")
async def health():
    """
    Tolerant health check.
    Mongo down is "degraded" (catalog reads use the fallback dataset); Redis is optional.
    """
    settings = get_settings()
    checks: dict[str, object] = {
        "app_name": settings.APP_NAME,
        "env": settings.APP_ENV,
        "debug": settings.DEBUG,
        "version": settings.GIT_SHA if settings.GIT_SHA != "unknown" else _git_sha(),
        "uptime_seconds": int(time.time() - START_TIME),
    }

    # --- Mongo ---
    db = mongo.get_db_or_none()
    if db is None:
        checks["mongodb"] = "not initialized"
    else:
        try:
            await db.command("ping")
            checks["mongodb"] = "ok"
        except Exception as e:
            checks["mongodb"] = f"error: {e}"

    # --- Redis ---
    r = get_redis()
    if r is None:
        checks["redis"] = "skipped"
    else:
        try:
            await r.ping()
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = f"error: {e}"

    checks["admin_token_set"] = bool(settings.ADMIN_TOKEN)

    if checks["mongodb"] == "ok" and checks["redis"] in ("ok", "skipped"):
        status = "ok"
    else:
        status = "degraded"

    return {"status": status, "checks": checks, "timestamp": int(time.time())}
