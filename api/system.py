"""
System endpoints

- GET  /api/me                 current user (debugging auth setup)
- GET  /api/internal/is-ready  readiness probe, no auth
- POST /api/dev/reset          wipe all data, dev mode only
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
import logging

from auth import User, get_current_user, require_admin
from database import Settings, get_db, get_settings
from models import Tournament, Participant, Match, EventLog
from schemas import UserResponse, ActionResponse

router = APIRouter(tags=["system"])
logger = logging.getLogger(__name__)


@router.get("/api/me", response_model=UserResponse)
def whoami(user: User = Depends(get_current_user)):
    return UserResponse(**user.to_dict())


@router.get("/api/internal/is-ready", response_class=PlainTextResponse)
def is_ready(db: Session = Depends(get_db)):
    """Readiness probe: 200 once the database answers, else 503."""
    try:
        db.execute(text("SELECT 1"))
        return PlainTextResponse("OK", status_code=200)
    except Exception as e:
        logger.warning(f"Database not ready: {e}")
        return PlainTextResponse("Database not ready", status_code=503)


@router.post("/api/dev/reset", response_model=ActionResponse)
def reset_database(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user: User = Depends(require_admin)
):
    """Delete every row (dev mode only)."""
    if not settings.dev_mode:
        raise HTTPException(status_code=403, detail="Only available in development")

    try:
        # Children first so the delete order works without FK cascades too
        for model in (Match, Participant, EventLog, Tournament):
            db.query(model).delete(synchronize_session=False)
        db.commit()
        logger.warning(f"Database reset by {user.email or user.name}")
        return ActionResponse(status="ok")

    except Exception as e:
        logger.error(f"Failed to reset database: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")
