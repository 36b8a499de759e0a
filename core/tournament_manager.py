"""
Tournament Manager: the tournament lifecycle

Responsibilities:
1. Create / update / delete tournaments
2. Lifecycle: activate (generates the schedule), complete, reopen
3. Read models: participants, matches, standings

All status changes go through TournamentStateMachine. Activation is the only
transition with a side effect on matches.
"""
from typing import List, Optional
import logging
import random

from sqlalchemy.orm import Session

from models import Tournament, Participant, TournamentStatus, EventLog
from schemas import TournamentCreate, TournamentPatch
from core.state_machine import TournamentStateMachine
from core.match_manager import MatchManager
from core.locks import with_tournament_lock
from core.exceptions import (
    TournamentNotFound,
    InvalidRoundCount,
    InvalidParticipantCount,
    InvalidStateTransition,
)
from services.standings_service import StandingRow, compute_standings
from database import transactional, get_settings

logger = logging.getLogger(__name__)


def check_round_count(rounds: int) -> int:
    max_rounds = get_settings().max_rounds
    if isinstance(rounds, bool) or not isinstance(rounds, int) or not 1 <= rounds <= max_rounds:
        raise InvalidRoundCount(
            f"Round count must be between 1 and {max_rounds}, got {rounds!r}"
        )
    return rounds


class TournamentManager:
    """Tournament lifecycle manager"""

    @staticmethod
    @transactional
    def create_tournament(db: Session, data: TournamentCreate) -> Tournament:
        """
        Create a tournament in `registration` status.

        Missing rounds / round duration fall back to the configured defaults.

        Raises:
            InvalidRoundCount
        """
        settings = get_settings()
        rounds = check_round_count(
            data.rounds if data.rounds is not None else settings.default_rounds
        )

        tournament = Tournament(
            name=data.name,
            description=data.description,
            format=data.format,
            rounds=rounds,
            round_duration_weeks=data.round_duration_weeks or settings.default_round_duration_weeks,
            registration_deadline=data.registration_deadline,
            start_date=data.start_date,
            end_date=data.end_date,
            status=TournamentStatus.REGISTRATION
        )
        db.add(tournament)
        db.flush()

        db.add(EventLog(
            tournament_id=tournament.id,
            event_type="TOURNAMENT_CREATED",
            data={"name": tournament.name, "rounds": rounds}
        ))

        logger.info(f"Created tournament {tournament.id} ({tournament.name!r}, {rounds} rounds)")
        return tournament

    @staticmethod
    @transactional
    def update_tournament(
        db: Session,
        tournament_id: int,
        patch: TournamentPatch,
        rng: Optional[random.Random] = None
    ) -> Tournament:
        """
        Apply a partial update.

        Plain fields are written first; a `status` in the patch is then
        routed through the state machine, so a registration -> active
        change generates the schedule exactly like activate() does.
        Setting the current status again is a no-op. `rounds` may only
        change while the tournament is still in registration.

        Raises:
            TournamentNotFound
            InvalidRoundCount
            InvalidStateTransition
            InvalidParticipantCount
            ScheduleRegenerationFailed
        """
        tournament = with_tournament_lock(tournament_id, db).first()
        if not tournament:
            raise TournamentNotFound(tournament_id)

        changes = patch.model_dump(exclude_unset=True)
        new_status = changes.pop("status", None)

        if "rounds" in changes:
            check_round_count(changes["rounds"])
            # The stored schedule covers exactly 1..rounds
            if changes["rounds"] != tournament.rounds and tournament.status != TournamentStatus.REGISTRATION:
                raise InvalidStateTransition(
                    f"Rounds of tournament {tournament_id} can only change during registration "
                    f"(status is {tournament.status.value})"
                )

        for field, value in changes.items():
            setattr(tournament, field, value)
        db.flush()

        if changes:
            logger.info(f"Updated tournament {tournament_id}: {sorted(changes)}")

        if new_status is not None and new_status != tournament.status:
            TournamentManager._change_status(db, tournament, new_status, rng=rng)

        return tournament

    @staticmethod
    def _change_status(
        db: Session,
        tournament: Tournament,
        to_status: TournamentStatus,
        rng: Optional[random.Random] = None
    ) -> Tournament:
        # Shared by activate()/complete()/reopen() and update_tournament()
        generates_schedule = (
            tournament.status == TournamentStatus.REGISTRATION
            and to_status == TournamentStatus.ACTIVE
        )

        if generates_schedule:
            participant_count = db.query(Participant).filter(
                Participant.tournament_id == tournament.id
            ).count()
            if participant_count < 2:
                raise InvalidParticipantCount(
                    f"Need at least 2 participants to activate, got {participant_count}"
                )

        tournament = TournamentStateMachine.transition(tournament.id, to_status, db)

        if generates_schedule:
            MatchManager.replace_schedule(db, tournament, rng=rng)

        return tournament

    @staticmethod
    @transactional
    def activate(db: Session, tournament_id: int, rng: Optional[random.Random] = None) -> Tournament:
        """
        registration -> active, generating the full schedule.

        Status change and schedule are committed together; on failure
        neither is.

        Raises:
            TournamentNotFound
            InvalidStateTransition: not in registration
            InvalidParticipantCount: fewer than 2 participants
            ScheduleRegenerationFailed
        """
        tournament = TournamentManager.get_tournament(db, tournament_id)
        return TournamentManager._change_status(db, tournament, TournamentStatus.ACTIVE, rng=rng)

    @staticmethod
    @transactional
    def complete(db: Session, tournament_id: int) -> Tournament:
        """active -> completed"""
        tournament = TournamentManager.get_tournament(db, tournament_id)
        return TournamentManager._change_status(db, tournament, TournamentStatus.COMPLETED)

    @staticmethod
    @transactional
    def reopen(db: Session, tournament_id: int) -> Tournament:
        """completed -> active; the existing schedule and results stay."""
        tournament = TournamentManager.get_tournament(db, tournament_id)
        if tournament.status != TournamentStatus.COMPLETED:
            # registration -> active must go through activate()
            raise InvalidStateTransition(
                f"Only completed tournaments can be reopened, "
                f"tournament {tournament_id} is {tournament.status.value}"
            )
        return TournamentManager._change_status(db, tournament, TournamentStatus.ACTIVE)

    @staticmethod
    @transactional
    def delete_tournament(db: Session, tournament_id: int) -> None:
        """Delete a tournament with its participants and matches."""
        tournament = with_tournament_lock(tournament_id, db).first()
        if not tournament:
            raise TournamentNotFound(tournament_id)

        db.delete(tournament)
        # Event rows outlive the tournament (tournament_id is set to NULL)
        db.add(EventLog(
            tournament_id=None,
            event_type="TOURNAMENT_DELETED",
            data={"tournament_id": tournament_id, "name": tournament.name}
        ))
        logger.info(f"Deleted tournament {tournament_id}")

    @staticmethod
    def get_tournament(db: Session, tournament_id: int) -> Tournament:
        """
        Look up a tournament by id.

        Raises:
            TournamentNotFound
        """
        tournament = db.query(Tournament).filter(Tournament.id == tournament_id).first()
        if not tournament:
            raise TournamentNotFound(tournament_id)
        return tournament

    @staticmethod
    def list_tournaments(db: Session) -> List[Tournament]:
        """Newest first."""
        return db.query(Tournament).order_by(
            Tournament.created_at.desc(), Tournament.id.desc()
        ).all()

    @staticmethod
    def get_participants(db: Session, tournament_id: int) -> List[Participant]:
        """Participants in registration order."""
        return db.query(Participant).filter(
            Participant.tournament_id == tournament_id
        ).order_by(Participant.registered_at, Participant.id).all()

    @staticmethod
    def get_standings(db: Session, tournament_id: int) -> List[StandingRow]:
        """
        Ranked standings, recomputed from the stored matches on every call.

        Raises:
            TournamentNotFound
        """
        TournamentManager.get_tournament(db, tournament_id)
        participants = TournamentManager.get_participants(db, tournament_id)
        matches = MatchManager.get_matches(db, tournament_id)
        return compute_standings(participants, matches)
