"""
Match Manager: schedule persistence and result entry

Responsibilities:
1. Replace a tournament's schedule (delete + insert, one transaction)
2. Record and clear match results
3. Match queries

The pairing and winner logic itself lives in services/; this module only
moves their output in and out of the database.
"""
from datetime import datetime
from typing import Dict, List, Optional
import logging
import random

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Tournament, Participant, Match, TournamentStatus, EventLog
from core.locks import with_tournament_lock, with_match_lock
from core.exceptions import (
    TournamentNotFound,
    MatchNotFound,
    TournamentNotActive,
    InvalidParticipantCount,
    ScheduleRegenerationFailed,
)
from services.pairing_service import generate_schedule, validate_schedule
from services.result_service import determine_winner, check_winner, check_match_participants
from database import transactional

logger = logging.getLogger(__name__)


class MatchManager:
    """Schedule and result management"""

    @staticmethod
    def replace_schedule(
        db: Session,
        tournament: Tournament,
        rng: Optional[random.Random] = None
    ) -> List[Match]:
        """
        Discard every match of the tournament and insert a fresh schedule.

        Runs inside the caller's transaction and never commits, so the
        delete and the insert become visible together or not at all.

        Parameters:
            db: SQLAlchemy Session
            tournament: locked Tournament row
            rng: optional random.Random for the pairing shuffle

        Returns:
            the new Match rows (flushed, ids assigned)

        Raises:
            InvalidRoundCount: tournament.rounds < 1
            InvalidSchedule: pairing invariant broken (nothing written)
            ScheduleRegenerationFailed: storage error during delete/insert
        """
        participant_ids = [
            pid for (pid,) in db.query(Participant.id)
            .filter(Participant.tournament_id == tournament.id)
            .order_by(Participant.registered_at, Participant.id)
            .all()
        ]

        # 1. Compute and check before touching stored rows
        schedule = generate_schedule(participant_ids, tournament.rounds, rng=rng)
        validate_schedule(schedule, participant_ids)

        # 2. Delete + insert
        try:
            deleted = db.query(Match).filter(
                Match.tournament_id == tournament.id
            ).delete(synchronize_session="fetch")

            matches = [
                Match(
                    tournament_id=tournament.id,
                    round=round_number,
                    player1_id=player1_id,
                    player2_id=player2_id
                )
                for round_number, pairings in sorted(schedule.items())
                for player1_id, player2_id in pairings
            ]
            db.add_all(matches)
            db.add(EventLog(
                tournament_id=tournament.id,
                event_type="SCHEDULE_GENERATED",
                data={
                    "rounds": tournament.rounds,
                    "participants": len(participant_ids),
                    "matches": len(matches),
                    "replaced": deleted
                }
            ))
            db.flush()
        except SQLAlchemyError as e:
            logger.error(
                f"Schedule replacement failed for tournament {tournament.id}: {e}",
                exc_info=True
            )
            raise ScheduleRegenerationFailed(tournament.id) from e

        logger.info(
            f"Generated {len(matches)} matches over {tournament.rounds} rounds "
            f"for tournament {tournament.id} (replaced {deleted})"
        )
        return matches

    @staticmethod
    @transactional
    def regenerate_schedule(
        db: Session,
        tournament_id: int,
        rng: Optional[random.Random] = None
    ) -> List[Match]:
        """
        Regenerate the schedule of an active tournament (admin action).

        Full replace: the match count afterwards is the freshly generated
        count. Recorded results are discarded along with the old matches.

        Raises:
            TournamentNotFound
            TournamentNotActive: only active tournaments have a schedule
            InvalidParticipantCount: fewer than 2 participants
            ScheduleRegenerationFailed: storage error, old schedule kept
        """
        tournament = with_tournament_lock(tournament_id, db).first()
        if not tournament:
            raise TournamentNotFound(tournament_id)

        if tournament.status != TournamentStatus.ACTIVE:
            raise TournamentNotActive(
                f"Tournament {tournament_id} is {tournament.status.value}, "
                f"schedules are regenerated only while active"
            )

        participant_count = db.query(Participant).filter(
            Participant.tournament_id == tournament_id
        ).count()
        if participant_count < 2:
            raise InvalidParticipantCount(
                f"Need at least 2 participants to build a schedule, got {participant_count}"
            )

        return MatchManager.replace_schedule(db, tournament, rng=rng)

    @staticmethod
    @transactional
    def record_result(
        db: Session,
        match_id: int,
        player1_score: int,
        player2_score: int,
        winner_id: Optional[int] = None,
        played_at: Optional[datetime] = None,
        reported_by: Optional[str] = None
    ) -> Match:
        """
        Record (or overwrite) a match result.

        The winner is derived from the scores. An explicit winner_id is
        accepted only if it names one of the two participants and agrees
        with the scores.

        Raises:
            MatchNotFound
            TournamentNotActive
            ParticipantNotInTournament
            InvalidScore: non-integer, negative or equal scores
            InvalidWinner
        """
        match = with_match_lock(match_id, db).first()
        if not match:
            raise MatchNotFound(match_id)

        if match.tournament.status != TournamentStatus.ACTIVE:
            raise TournamentNotActive(
                f"Tournament {match.tournament_id} is {match.tournament.status.value}, "
                f"results can only be recorded while active"
            )

        check_match_participants(match)
        derived_winner_id = determine_winner(
            match.player1_id, match.player2_id, player1_score, player2_score
        )
        check_winner(match, winner_id, derived_winner_id)

        match.player1_score = player1_score
        match.player2_score = player2_score
        match.winner_id = derived_winner_id
        match.played_at = played_at or datetime.utcnow()
        match.reported_by = reported_by

        db.add(EventLog(
            tournament_id=match.tournament_id,
            event_type="RESULT_RECORDED",
            data={
                "match_id": match.id,
                "score": [player1_score, player2_score],
                "winner_id": derived_winner_id,
                "reported_by": reported_by
            }
        ))

        logger.info(
            f"Match {match.id} (round {match.round}): "
            f"{match.player1_id} {player1_score}-{player2_score} {match.player2_id}, "
            f"winner {derived_winner_id}"
        )
        return match

    @staticmethod
    @transactional
    def clear_result(db: Session, match_id: int) -> Match:
        """Reset a match to 'not yet played'."""
        match = with_match_lock(match_id, db).first()
        if not match:
            raise MatchNotFound(match_id)

        if match.tournament.status != TournamentStatus.ACTIVE:
            raise TournamentNotActive(
                f"Tournament {match.tournament_id} is {match.tournament.status.value}, "
                f"results can only be cleared while active"
            )

        match.player1_score = None
        match.player2_score = None
        match.winner_id = None
        match.played_at = None
        match.reported_by = None

        db.add(EventLog(
            tournament_id=match.tournament_id,
            event_type="RESULT_CLEARED",
            data={"match_id": match.id}
        ))

        logger.info(f"Cleared result of match {match.id}")
        return match

    @staticmethod
    def get_match(db: Session, match_id: int) -> Match:
        match = db.query(Match).filter(Match.id == match_id).first()
        if not match:
            raise MatchNotFound(match_id)
        return match

    @staticmethod
    def get_matches(db: Session, tournament_id: int, round_number: Optional[int] = None) -> List[Match]:
        """
        Matches of a tournament ordered by round, then id.

        Parameters:
            round_number: restrict to one round
        """
        query = db.query(Match).filter(Match.tournament_id == tournament_id)
        if round_number is not None:
            query = query.filter(Match.round == round_number)
        return query.order_by(Match.round, Match.id).all()

    @staticmethod
    def group_by_round(matches: List[Match]) -> Dict[int, List[Match]]:
        rounds: Dict[int, List[Match]] = {}
        for match in matches:
            rounds.setdefault(match.round, []).append(match)
        return rounds
