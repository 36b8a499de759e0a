"""
Tournament API Endpoints

Responsibilities:
1. Tournament CRUD (admin)
2. Lifecycle actions: activate / complete / reopen / regenerate (admin)
3. Read models: detail, matches, standings (any authenticated user)
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session
import logging

from auth import User, get_current_user, require_admin
from database import get_db
from models import Tournament, Match
from schemas import (
    TournamentCreate,
    TournamentPatch,
    TournamentResponse,
    TournamentDetailResponse,
    ParticipantResponse,
    MatchResponse,
    ScheduleResponse,
    StandingResponse,
)
from core.tournament_manager import TournamentManager
from core.match_manager import MatchManager
from core.exceptions import (
    TournamentNotFound,
    InvalidRoundCount,
    InvalidParticipantCount,
    InvalidStateTransition,
    TournamentNotActive,
    InvalidSchedule,
    ScheduleRegenerationFailed,
)

router = APIRouter(
    prefix="/api/tournaments",
    tags=["tournaments"],
    dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger(__name__)

LIFECYCLE_ERRORS = (
    InvalidRoundCount,
    InvalidParticipantCount,
    InvalidStateTransition,
    TournamentNotActive,
    InvalidSchedule,
)


def _schedule_response(tournament: Tournament, matches: List[Match]) -> ScheduleResponse:
    rounds = MatchManager.group_by_round(matches)
    return ScheduleResponse(
        tournament_id=tournament.id,
        status=tournament.status,
        match_count=len(matches),
        rounds={
            round_number: [MatchResponse.model_validate(m) for m in round_matches]
            for round_number, round_matches in rounds.items()
        }
    )


def _standings_response(db: Session, tournament_id: int) -> List[StandingResponse]:
    return [
        StandingResponse(**row.to_dict())
        for row in TournamentManager.get_standings(db, tournament_id)
    ]


@router.get("", response_model=List[TournamentResponse])
def list_tournaments(db: Session = Depends(get_db)):
    """All tournaments, newest first."""
    return TournamentManager.list_tournaments(db)


@router.get("/{tournament_id}", response_model=TournamentDetailResponse)
def get_tournament(tournament_id: int, db: Session = Depends(get_db)):
    """
    Tournament detail

    Returns:
        - tournament
        - participants (registration order)
        - matches (by round, then id)
        - standings (recomputed on every request)
    """
    try:
        tournament = TournamentManager.get_tournament(db, tournament_id)
        participants = TournamentManager.get_participants(db, tournament_id)
        matches = MatchManager.get_matches(db, tournament_id)

        return TournamentDetailResponse(
            tournament=TournamentResponse.model_validate(tournament),
            participants=[ParticipantResponse.model_validate(p) for p in participants],
            matches=[MatchResponse.model_validate(m) for m in matches],
            standings=_standings_response(db, tournament_id)
        )

    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except Exception as e:
        logger.error(f"Failed to get tournament: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("", response_model=TournamentResponse, status_code=201)
def create_tournament(
    data: TournamentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Create a tournament (admin). Starts in `registration`."""
    try:
        tournament = TournamentManager.create_tournament(db, data)
        return tournament

    except InvalidRoundCount as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create tournament: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.put("/{tournament_id}", response_model=TournamentResponse)
def update_tournament(
    tournament_id: int,
    patch: TournamentPatch,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """
    Partial update (admin)

    Only fields present in the body change. A status change goes through
    the lifecycle rules; registration -> active generates the schedule.
    """
    try:
        return TournamentManager.update_tournament(db, tournament_id, patch)

    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except LIFECYCLE_ERRORS as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ScheduleRegenerationFailed as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update tournament: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{tournament_id}", status_code=204)
def delete_tournament(
    tournament_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Delete a tournament with its participants and matches (admin)."""
    try:
        TournamentManager.delete_tournament(db, tournament_id)
        return Response(status_code=204)

    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except Exception as e:
        logger.error(f"Failed to delete tournament: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{tournament_id}/activate", response_model=ScheduleResponse)
def activate_tournament(
    tournament_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """
    Start the tournament (admin)

    Preconditions:
    - status is `registration`
    - at least 2 participants

    Effect:
    - status -> active
    - full schedule generated for every round
    """
    try:
        tournament = TournamentManager.activate(db, tournament_id)
        matches = MatchManager.get_matches(db, tournament_id)
        return _schedule_response(tournament, matches)

    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except LIFECYCLE_ERRORS as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ScheduleRegenerationFailed as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to activate tournament: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{tournament_id}/complete", response_model=TournamentResponse)
def complete_tournament(
    tournament_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """active -> completed (admin)"""
    try:
        return TournamentManager.complete(db, tournament_id)

    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except InvalidStateTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to complete tournament: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{tournament_id}/reopen", response_model=TournamentResponse)
def reopen_tournament(
    tournament_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """completed -> active (admin). Matches and results are kept."""
    try:
        return TournamentManager.reopen(db, tournament_id)

    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except InvalidStateTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to reopen tournament: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{tournament_id}/regenerate", response_model=ScheduleResponse)
def regenerate_schedule(
    tournament_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """
    Replace the whole schedule of an active tournament (admin)

    Existing matches and their results are discarded. If storage fails the
    old schedule is kept and 500 is returned; retry the request.
    """
    try:
        MatchManager.regenerate_schedule(db, tournament_id)
        tournament = TournamentManager.get_tournament(db, tournament_id)
        matches = MatchManager.get_matches(db, tournament_id)
        return _schedule_response(tournament, matches)

    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except LIFECYCLE_ERRORS as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ScheduleRegenerationFailed as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to regenerate schedule: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{tournament_id}/matches", response_model=List[MatchResponse])
def list_matches(
    tournament_id: int,
    round: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db)
):
    """Matches of a tournament, optionally one round only."""
    try:
        TournamentManager.get_tournament(db, tournament_id)
        return MatchManager.get_matches(db, tournament_id, round_number=round)

    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")


@router.get("/{tournament_id}/standings", response_model=List[StandingResponse])
def get_standings(tournament_id: int, db: Session = Depends(get_db)):
    """Ranked standings: wins desc, then losses asc, then registration order."""
    try:
        return _standings_response(db, tournament_id)

    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
