import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.config import settings
from app.db import db_ping
from app.redis_client import redis_ping

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

@router.get("/health")
def health() -> dict:
    return {"status": "ok", "env": settings.app_env}

def _run_probe(fn) -> tuple[bool, str | None]:
    try:
        return bool(fn()), None
    except Exception as e:
        msg = str(e).strip()
        return False, f"{e.__class__.__name__}{(': ' + msg) if msg else ''}"

# 200 only when every dependency answers, 503 with details otherwise
@router.get("/ready")
def ready():
    checks: dict[str, bool] = {}
    errors: dict[str, str] = {}

    for name, fn in (("db", db_ping), ("redis", redis_ping)):
        checks[name], error = _run_probe(fn)
        if error:
            errors[name] = error

    ok = all(checks.values())
    if not ok:
        logger.warning("readiness failed checks=%s errors=%s", checks, errors)

    body: dict = {"status": "ok" if ok else "unready", "checks": checks}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=200 if ok else 503, content=body)
