from __future__ import annotations

import time
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select, text
from sqlalchemy.orm import Session

from wms.core.config import settings
from wms.db.session import get_db
from wms.models.inventory_models import Warehouse

router = APIRouter(tags=["health"])


def _ping(db: Session) -> None:
    db.execute(text("SELECT 1"))


def _schema_ready(db: Session) -> bool:
    """The warehouse table answers a count, so migrations have run."""
    try:
        db.scalar(select(func.count()).select_from(Warehouse))
    except Exception:  # noqa: BLE001
        db.rollback()
        return False
    return True


@router.get("/healthz")
def healthz(db: Annotated[Session, Depends(get_db)]) -> dict[str, str]:
    """Cheap database round trip."""
    try:
        _ping(db)
    except Exception as exc:  # noqa: BLE001
        raise HTTPException(status_code=503, detail="Database connectivity check failed") from exc
    return {"status": "ok"}


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "alive"}


@router.get("/ready")
def ready(db: Annotated[Session, Depends(get_db)]) -> dict[str, object]:
    """Readiness: database reachable and inventory schema present."""
    start = time.perf_counter()
    try:
        _ping(db)
        db_ok = True
    except Exception:  # noqa: BLE001
        db_ok = False
    schema_ok = db_ok and _schema_ready(db)
    report: dict[str, object] = {
        "db": db_ok,
        "schema": schema_ok,
        "env": settings.ENV,
        "version": settings.APP_VERSION,
        "latency_ms": int((time.perf_counter() - start) * 1000),
    }
    if not schema_ok:
        raise HTTPException(status_code=503, detail=report)
    return {"status": "ready", **report}
