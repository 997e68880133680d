from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.config import get_settings
from app.core.exceptions import ConfigurationError
from app.db.bootstrap import schema_gaps
from app.db.session import engine
from app.services.civil_time import get_calendar_zone, today

router = APIRouter()

settings = get_settings()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    database = {"ok": True, "schema_ok": False, "missing_tables": [], "missing_columns": {}, "error": None}
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            database["missing_tables"], database["missing_columns"] = schema_gaps(connection)
        database["schema_ok"] = not database["missing_tables"] and not database["missing_columns"]
    except Exception as exc:  # pragma: no cover - environment dependent
        database["ok"] = False
        database["error"] = str(exc)

    calendar = {"timezone": settings.calendar_timezone, "ok": True, "today": None}
    try:
        calendar["today"] = today(get_calendar_zone()).isoformat()
    except ConfigurationError as exc:
        calendar["ok"] = False
        calendar["error"] = exc.message

    ready = database["ok"] and database["schema_ok"] and calendar["ok"]
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
        "calendar": calendar,
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
