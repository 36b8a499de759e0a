"""
Tests for the per-round pairing generator.
"""
import random

import pytest

from core.exceptions import InvalidRoundCount, InvalidSchedule
from services.pairing_service import (
    generate_schedule,
    validate_schedule,
    pair_round,
)


def sitting_out(schedule, roster):
    """Roster members without a match, per round."""
    return {
        round_number: [pid for pid in roster if pid not in {p for pairing in pairings for p in pairing}]
        for round_number, pairings in schedule.items()
    }


@pytest.mark.parametrize("roster_size", [2, 3, 4, 5, 8, 11])
@pytest.mark.parametrize("round_count", [1, 3, 10])
def test_schedule_shape(roster_size, round_count):
    roster = list(range(100, 100 + roster_size))
    schedule = generate_schedule(roster, round_count, rng=random.Random(7))

    assert sorted(schedule) == list(range(1, round_count + 1))
    for pairings in schedule.values():
        assert len(pairings) == roster_size // 2
        players = [pid for pairing in pairings for pid in pairing]
        # no double booking, only roster members, no self-pairing
        assert len(players) == len(set(players))
        assert set(players) <= set(roster)
        assert all(a != b for a, b in pairings)

    validate_schedule(schedule, roster)


@pytest.mark.parametrize("roster", [[], [42]])
def test_small_roster_gives_empty_rounds(roster):
    schedule = generate_schedule(roster, 3)
    assert schedule == {1: [], 2: [], 3: []}


@pytest.mark.parametrize("round_count", [0, -1, True, 2.0, None])
def test_invalid_round_count_rejected(round_count):
    with pytest.raises(InvalidRoundCount):
        generate_schedule([1, 2, 3, 4], round_count)


def test_seeded_rng_is_reproducible():
    roster = list(range(1, 11))
    first = generate_schedule(roster, 5, rng=random.Random(2024))
    second = generate_schedule(roster, 5, rng=random.Random(2024))
    assert first == second


def test_rounds_are_paired_independently():
    # With 10 players and 20 rounds, identical pairings in every round
    # would mean the shuffle is not applied per round.
    schedule = generate_schedule(list(range(10)), 20, rng=random.Random(1))
    distinct = {tuple(sorted(tuple(sorted(p)) for p in pairings)) for pairings in schedule.values()}
    assert len(distinct) > 1


def test_odd_roster_leaves_exactly_one_out_per_round():
    roster = [1, 2, 3, 4, 5]
    schedule = generate_schedule(roster, 4, rng=random.Random(3))
    out_per_round = sitting_out(schedule, roster)

    assert all(len(out) == 1 for out in out_per_round.values())


def test_pair_round_does_not_mutate_roster():
    roster = [1, 2, 3, 4]
    pair_round(roster, random.Random(0))
    assert roster == [1, 2, 3, 4]


def test_pair_round_walks_permutation_two_at_a_time():
    class NoShuffle(random.Random):
        def shuffle(self, x, *args, **kwargs):
            return None

    assert pair_round([1, 2, 3, 4, 5], NoShuffle()) == [(1, 2), (3, 4)]


def test_validate_schedule_rejects_double_booking():
    with pytest.raises(InvalidSchedule, match="double-booked"):
        validate_schedule({1: [(1, 2), (2, 3)]}, [1, 2, 3])


def test_validate_schedule_rejects_self_pairing():
    with pytest.raises(InvalidSchedule, match="itself"):
        validate_schedule({1: [(1, 1)]}, [1, 2])


def test_validate_schedule_rejects_foreign_participant():
    with pytest.raises(InvalidSchedule, match="not in the roster"):
        validate_schedule({1: [(1, 99)]}, [1, 2])
