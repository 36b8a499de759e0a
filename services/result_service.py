"""
Result service: winner derivation and result validation

Pure computation. The higher score wins; draws cannot be represented, so
equal scores are rejected.
"""
from typing import Any, Optional

from core.exceptions import InvalidScore, InvalidWinner, ParticipantNotInTournament


def _check_score(value: Any, label: str) -> int:
    # bool is an int subclass, but True/False is never a score
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidScore(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidScore(f"{label} must not be negative, got {value}")
    return value


def determine_winner(player1_id: int, player2_id: int, player1_score: Any, player2_score: Any) -> int:
    """
    Return the id of the higher-scoring side.

    Raises:
        InvalidScore: non-integer, negative or equal scores
    """
    score1 = _check_score(player1_score, "player1_score")
    score2 = _check_score(player2_score, "player2_score")

    if score1 == score2:
        raise InvalidScore(f"Draws are not allowed ({score1}-{score2})")

    return player1_id if score1 > score2 else player2_id


def check_winner(match: Any, winner_id: Optional[int], derived_winner_id: int) -> None:
    """
    Validate an explicitly supplied winner.

    Raises:
        InvalidWinner: winner is not one of the two participants, or
            disagrees with the scores
    """
    if winner_id is None:
        return
    if winner_id not in (match.player1_id, match.player2_id):
        raise InvalidWinner(
            f"Participant {winner_id} is not playing in match {match.id}"
        )
    if winner_id != derived_winner_id:
        raise InvalidWinner(
            f"Winner {winner_id} contradicts the scores of match {match.id}"
        )


def check_match_participants(match: Any) -> None:
    """
    Both participants must be distinct and belong to the match's tournament.

    Raises:
        ParticipantNotInTournament
    """
    if match.player1_id == match.player2_id:
        raise ParticipantNotInTournament(
            f"Match {match.id} pairs participant {match.player1_id} with itself"
        )
    for participant in (match.player1, match.player2):
        if participant is None or participant.tournament_id != match.tournament_id:
            raise ParticipantNotInTournament(
                f"Match {match.id} references a participant outside tournament {match.tournament_id}"
            )
