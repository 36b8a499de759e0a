"""
Concurrency helpers

Row-level locking through SELECT ... FOR UPDATE (pessimistic locking).
SQLite ignores FOR UPDATE; there the database-wide write lock taken by the
transaction serializes writers instead.
"""
from sqlalchemy.orm import Session, Query

from models import Tournament, Match


def with_tournament_lock(tournament_id: int, db: Session) -> Query:
    """
    Lock one Tournament row.

    Used when:
    - changing the tournament status
    - regenerating the schedule (delete + insert must not interleave with
      another regeneration of the same tournament)

    Example:
        tournament = with_tournament_lock(tournament_id, db).first()
        if not tournament:
            raise TournamentNotFound(tournament_id)

    Returns:
        Query object (call .first() or .one())

    Notes:
        - nowait=False waits for the lock instead of failing
        - must run inside a transaction (see @transactional)
    """
    return db.query(Tournament).filter(
        Tournament.id == tournament_id
    ).with_for_update(nowait=False)


def with_match_lock(match_id: int, db: Session) -> Query:
    """
    Lock one Match row while its result is written.
    """
    return db.query(Match).filter(
        Match.id == match_id
    ).with_for_update(nowait=False)
