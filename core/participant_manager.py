"""
Participant Manager: registration and roster maintenance

Responsibilities:
1. Self-registration (open only during `registration`, before the deadline)
2. Admin edits and removal

Emails are stored lower-cased and stripped, so the (tournament_id, email)
unique constraint also enforces case-insensitive uniqueness.
"""
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Participant, Match, TournamentStatus, EventLog
from schemas import ParticipantRegister, ParticipantPatch
from core.locks import with_tournament_lock
from core.exceptions import (
    TournamentNotFound,
    ParticipantNotFound,
    RegistrationClosed,
    RegistrationDeadlinePassed,
    DuplicateRegistration,
)
from database import transactional

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _email_taken(db: Session, tournament_id: int, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Participant).filter(
        Participant.tournament_id == tournament_id,
        Participant.email == email
    )
    if exclude_id is not None:
        query = query.filter(Participant.id != exclude_id)
    return db.query(query.exists()).scalar()


class ParticipantManager:
    """Roster management"""

    @staticmethod
    @transactional
    def register(db: Session, data: ParticipantRegister, now: Optional[datetime] = None) -> Participant:
        """
        Register a participant in a tournament.

        Preconditions:
        1. Tournament exists
        2. Tournament status is `registration`
        3. Registration deadline (if any) has not passed
        4. Email not yet registered in this tournament

        Parameters:
            db: SQLAlchemy Session
            data: validated registration payload
            now: current time (naive UTC); defaults to utcnow

        Returns:
            the new Participant

        Raises:
            TournamentNotFound
            RegistrationClosed
            RegistrationDeadlinePassed
            DuplicateRegistration
        """
        now = now or datetime.utcnow()

        tournament = with_tournament_lock(data.tournament_id, db).first()
        if not tournament:
            raise TournamentNotFound(data.tournament_id)

        if tournament.status != TournamentStatus.REGISTRATION:
            raise RegistrationClosed(
                f"Tournament {tournament.id} is not accepting registrations "
                f"(status: {tournament.status.value})"
            )

        if tournament.registration_deadline and tournament.registration_deadline < now:
            raise RegistrationDeadlinePassed(
                f"Registration for tournament {tournament.id} closed at "
                f"{tournament.registration_deadline.isoformat()}"
            )

        email = normalize_email(data.email)
        if _email_taken(db, tournament.id, email):
            raise DuplicateRegistration(f"{email} is already registered in tournament {tournament.id}")

        participant = Participant(
            tournament_id=tournament.id,
            name=data.name,
            email=email,
            nav_ident=data.nav_ident,
            slack_handle=data.slack_handle
        )
        db.add(participant)
        try:
            db.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent registration with the same email
            raise DuplicateRegistration(
                f"{email} is already registered in tournament {tournament.id}"
            ) from e

        db.add(EventLog(
            tournament_id=tournament.id,
            event_type="PARTICIPANT_REGISTERED",
            data={"participant_id": participant.id}
        ))

        logger.info(f"Participant {participant.id} registered in tournament {tournament.id}")
        return participant

    @staticmethod
    @transactional
    def update_participant(db: Session, participant_id: int, patch: ParticipantPatch) -> Participant:
        """
        Apply an admin edit.

        Raises:
            ParticipantNotFound
            DuplicateRegistration: new email already used in the tournament
        """
        participant = ParticipantManager.get_participant(db, participant_id)
        changes = patch.model_dump(exclude_unset=True)

        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
            if _email_taken(db, participant.tournament_id, changes["email"], exclude_id=participant.id):
                raise DuplicateRegistration(
                    f"{changes['email']} is already registered in tournament {participant.tournament_id}"
                )

        for field, value in changes.items():
            setattr(participant, field, value)

        logger.info(f"Updated participant {participant_id}: {sorted(changes)}")
        return participant

    @staticmethod
    @transactional
    def remove_participant(db: Session, participant_id: int) -> None:
        """
        Remove a participant together with every match they appear in.

        Raises:
            ParticipantNotFound
        """
        participant = ParticipantManager.get_participant(db, participant_id)
        tournament_id = participant.tournament_id

        removed_matches = db.query(Match).filter(
            or_(Match.player1_id == participant_id, Match.player2_id == participant_id)
        ).delete(synchronize_session="fetch")
        db.delete(participant)

        db.add(EventLog(
            tournament_id=tournament_id,
            event_type="PARTICIPANT_REMOVED",
            data={"participant_id": participant_id, "matches_removed": removed_matches}
        ))

        logger.info(
            f"Removed participant {participant_id} from tournament {tournament_id} "
            f"({removed_matches} matches dropped)"
        )

    @staticmethod
    def get_participant(db: Session, participant_id: int) -> Participant:
        participant = db.query(Participant).filter(Participant.id == participant_id).first()
        if not participant:
            raise ParticipantNotFound(participant_id)
        return participant
