"""
Match API Endpoints - result entry

Scores are validated by the schema (non-negative integers) and again by the
core, which also rejects draws and foreign winners.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from auth import User, get_current_user, require_admin
from database import get_db
from schemas import MatchResultSubmit, MatchResponse
from core.match_manager import MatchManager
from core.exceptions import (
    MatchNotFound,
    TournamentNotActive,
    InvalidScore,
    InvalidWinner,
    ParticipantNotInTournament,
)

router = APIRouter(prefix="/api/matches", tags=["matches"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger(__name__)


@router.get("/{match_id}", response_model=MatchResponse)
def get_match(match_id: int, db: Session = Depends(get_db)):
    try:
        return MatchManager.get_match(db, match_id)

    except MatchNotFound:
        raise HTTPException(status_code=404, detail="Match not found")


@router.put("/{match_id}/result", response_model=MatchResponse)
def record_result(
    match_id: int,
    result: MatchResultSubmit,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """
    Record a match result (admin)

    Body:
        - player1_score / player2_score: non-negative, unequal
        - winner_id (optional): must be the higher-scoring participant
        - played_at (optional): defaults to now

    The reporting admin's email is stored in `reported_by`.
    """
    try:
        return MatchManager.record_result(
            db,
            match_id,
            result.player1_score,
            result.player2_score,
            winner_id=result.winner_id,
            played_at=result.played_at,
            reported_by=user.email or user.name
        )

    except MatchNotFound:
        raise HTTPException(status_code=404, detail="Match not found")
    except (TournamentNotActive, InvalidScore, InvalidWinner, ParticipantNotInTournament) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to record result: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{match_id}/result", response_model=MatchResponse)
def clear_result(
    match_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Reset a match to 'not yet played' (admin)."""
    try:
        return MatchManager.clear_result(db, match_id)

    except MatchNotFound:
        raise HTTPException(status_code=404, detail="Match not found")
    except TournamentNotActive as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to clear result: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")
