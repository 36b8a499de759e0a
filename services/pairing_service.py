"""
Pairing service: builds the round-by-round schedule

Pure computation, no database access. Each round is an independent random
pairing of the roster:

1. shuffle the roster
2. pair index 0 with 1, 2 with 3, ...
3. with an odd roster the last participant sits out that round

Rounds are independent, so two participants may meet more than once and some
pairs may never meet.
"""
import random
from typing import Dict, List, Optional, Sequence, Tuple

from core.exceptions import InvalidRoundCount, InvalidSchedule

Pairing = Tuple[int, int]
Schedule = Dict[int, List[Pairing]]


def pair_round(participant_ids: Sequence[int], rng: random.Random) -> List[Pairing]:
    """
    Pair one round.

    Parameters:
        participant_ids: roster for this round
        rng: random source used for the shuffle

    Returns:
        list of (player1_id, player2_id); len == len(roster) // 2
    """
    shuffled = list(participant_ids)
    rng.shuffle(shuffled)

    return [
        (shuffled[i], shuffled[i + 1])
        for i in range(0, len(shuffled) - 1, 2)
    ]


def generate_schedule(
    participant_ids: Sequence[int],
    round_count: int,
    rng: Optional[random.Random] = None
) -> Schedule:
    """
    Generate pairings for rounds 1..round_count.

    Parameters:
        participant_ids: roster (participant ids)
        round_count: number of rounds, must be >= 1
        rng: optional random.Random; pass a seeded one for reproducible output

    Returns:
        {round_number: [(player1_id, player2_id), ...]}
        Every round is present. Fewer than 2 participants gives empty rounds.

    Raises:
        InvalidRoundCount: round_count < 1

    Example:
        generate_schedule([1, 2, 3, 4], 2)
        -> {1: [(3, 1), (4, 2)], 2: [(2, 3), (1, 4)]}
    """
    if isinstance(round_count, bool) or not isinstance(round_count, int) or round_count < 1:
        raise InvalidRoundCount(f"Round count must be an integer >= 1, got {round_count!r}")

    rng = rng or random.Random()
    roster = list(participant_ids)

    if len(roster) < 2:
        return {round_number: [] for round_number in range(1, round_count + 1)}

    return {
        round_number: pair_round(roster, rng)
        for round_number in range(1, round_count + 1)
    }


def validate_schedule(schedule: Schedule, participant_ids: Sequence[int]) -> None:
    """
    Check the pairing invariants before anything is written.

    - both sides of a pairing are distinct roster members
    - nobody plays twice in the same round

    Raises:
        InvalidSchedule: on the first violation found
    """
    roster = set(participant_ids)

    for round_number, pairings in schedule.items():
        seen = set()
        for player1_id, player2_id in pairings:
            if player1_id == player2_id:
                raise InvalidSchedule(
                    f"Round {round_number}: participant {player1_id} paired with itself"
                )
            for participant_id in (player1_id, player2_id):
                if participant_id not in roster:
                    raise InvalidSchedule(
                        f"Round {round_number}: participant {participant_id} is not in the roster"
                    )
                if participant_id in seen:
                    raise InvalidSchedule(
                        f"Round {round_number}: participant {participant_id} is double-booked"
                    )
                seen.add(participant_id)
