"""
Participant API Endpoints

Responsibilities:
1. Self-registration (any authenticated user)
2. Admin edits and removal
"""
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
import logging

from auth import User, get_current_user, require_admin
from database import get_db
from schemas import (
    ParticipantRegister,
    ParticipantPatch,
    ParticipantResponse,
    RegistrationResponse,
)
from core.participant_manager import ParticipantManager
from core.exceptions import (
    TournamentNotFound,
    ParticipantNotFound,
    RegistrationClosed,
    DuplicateRegistration,
)

router = APIRouter(prefix="/api", tags=["participants"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger(__name__)


@router.post("/register", response_model=RegistrationResponse, status_code=201)
def register(data: ParticipantRegister, db: Session = Depends(get_db)):
    """
    Register for a tournament

    Preconditions:
    - tournament exists and is in `registration`
    - registration deadline not passed
    - email not already registered (case-insensitive)
    """
    try:
        participant = ParticipantManager.register(db, data)
        return RegistrationResponse(
            participant_id=participant.id,
            message="You are now registered for the tournament"
        )

    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except RegistrationClosed as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DuplicateRegistration as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Registration failed: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/participants/{participant_id}", response_model=ParticipantResponse)
def get_participant(participant_id: int, db: Session = Depends(get_db)):
    try:
        return ParticipantManager.get_participant(db, participant_id)

    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")


@router.put("/participants/{participant_id}", response_model=ParticipantResponse)
def update_participant(
    participant_id: int,
    patch: ParticipantPatch,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Edit name / email / handles (admin)."""
    try:
        return ParticipantManager.update_participant(db, participant_id, patch)

    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")
    except DuplicateRegistration as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update participant: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/participants/{participant_id}", status_code=204)
def remove_participant(
    participant_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Remove a participant and every match they appear in (admin)."""
    try:
        ParticipantManager.remove_participant(db, participant_id)
        return Response(status_code=204)

    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")
    except Exception as e:
        logger.error(f"Failed to remove participant: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")
