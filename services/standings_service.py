"""
Standings service: ranks participants from recorded results

Pure computation over already-loaded rows. Only matches with a winner count;
an unplayed match contributes nothing.

Ranking:
1. more wins first
2. equal wins: fewer losses first
3. still equal: input order (no further tie-break)
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence


@dataclass
class StandingRow:
    participant: Any
    wins: int = 0
    losses: int = 0
    played: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participant_id": self.participant.id,
            "name": self.participant.name,
            "wins": self.wins,
            "losses": self.losses,
            "played": self.played,
        }


def compute_standings(participants: Sequence[Any], matches: Iterable[Any]) -> List[StandingRow]:
    """
    Compute the ranked standings table.

    Parameters:
        participants: objects with an `id` (ORM rows or plain records),
            in the order ties should keep
        matches: objects with `player1_id`, `player2_id` and `winner_id`

    Returns:
        StandingRow list, best first
    """
    rows = [StandingRow(participant=p) for p in participants]
    by_id = {row.participant.id: row for row in rows}

    for match in matches:
        if match.winner_id is None:
            continue
        for participant_id in (match.player1_id, match.player2_id):
            row = by_id.get(participant_id)
            if row is None:
                continue
            row.played += 1
            if match.winner_id == participant_id:
                row.wins += 1

    for row in rows:
        row.losses = row.played - row.wins

    # sorted() is stable, so equal rows keep participant order
    return sorted(rows, key=lambda row: (-row.wins, row.losses))
