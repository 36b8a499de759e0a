"""
Tournament state machine

Every status change goes through TournamentStateMachine.transition(), which
checks the transition table and writes a TOURNAMENT_STATE_CHANGED event.

    registration -> active -> completed
                      ^           |
                      +-----------+   (reopen)

The state machine only writes the status. Side effects (schedule generation
on registration -> active) belong to TournamentManager.
"""
from typing import Dict, List
import logging

from sqlalchemy.orm import Session

from models import Tournament, TournamentStatus, EventLog
from core.locks import with_tournament_lock
from core.exceptions import TournamentNotFound, InvalidStateTransition

logger = logging.getLogger(__name__)


class TournamentStateMachine:
    """Transition table and status writes for Tournament"""

    ALLOWED_TRANSITIONS: Dict[TournamentStatus, List[TournamentStatus]] = {
        TournamentStatus.REGISTRATION: [TournamentStatus.ACTIVE],
        TournamentStatus.ACTIVE: [TournamentStatus.COMPLETED],
        TournamentStatus.COMPLETED: [TournamentStatus.ACTIVE],
    }

    @classmethod
    def can_transition(cls, from_status: TournamentStatus, to_status: TournamentStatus) -> bool:
        return to_status in cls.ALLOWED_TRANSITIONS.get(from_status, [])

    @classmethod
    def transition(cls, tournament_id: int, to_status: TournamentStatus, db: Session) -> Tournament:
        """
        Move a tournament to `to_status`.

        Does not commit; the caller's transaction owns the write.

        Raises:
            TournamentNotFound
            InvalidStateTransition
        """
        tournament = with_tournament_lock(tournament_id, db).first()
        if not tournament:
            raise TournamentNotFound(tournament_id)

        from_status = tournament.status
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateTransition(
                f"Cannot move tournament {tournament_id} from "
                f"{from_status.value} to {to_status.value}"
            )

        tournament.status = to_status
        db.add(EventLog(
            tournament_id=tournament_id,
            event_type="TOURNAMENT_STATE_CHANGED",
            data={"from": from_status.value, "to": to_status.value}
        ))
        db.flush()

        logger.info(
            f"Tournament {tournament_id}: {from_status.value} -> {to_status.value}"
        )
        return tournament
