"""
Business exceptions

All domain errors live here so the API layer can map them in one place.
"""


class TournamentTrackerException(Exception):
    """Base class for every business error"""
    pass


# ============ Lookup errors ============

class TournamentNotFound(TournamentTrackerException):
    """Tournament does not exist"""
    def __init__(self, tournament_id):
        self.tournament_id = tournament_id
        super().__init__(f"Tournament {tournament_id} not found")


class ParticipantNotFound(TournamentTrackerException):
    """Participant does not exist"""
    def __init__(self, participant_id):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} not found")


class MatchNotFound(TournamentTrackerException):
    """Match does not exist"""
    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found")


# ============ Precondition violations ============

class InvalidRoundCount(TournamentTrackerException):
    """Round count outside 1..max_rounds"""
    pass


class InvalidParticipantCount(TournamentTrackerException):
    """Not enough participants (activation needs at least 2)"""
    pass


class InvalidStateTransition(TournamentTrackerException):
    """Lifecycle transition not allowed from the current status"""
    pass


class TournamentNotActive(TournamentTrackerException):
    """Results can only be entered while the tournament is active"""
    pass


class RegistrationClosed(TournamentTrackerException):
    """Tournament no longer accepts registrations"""
    pass


class RegistrationDeadlinePassed(RegistrationClosed):
    """Registration deadline is in the past"""
    pass


# ============ Referential violations ============

class DuplicateRegistration(TournamentTrackerException):
    """Email already registered in this tournament"""
    pass


class InvalidScore(TournamentTrackerException):
    """Scores are missing, negative, non-integer or equal"""
    pass


class InvalidWinner(TournamentTrackerException):
    """Winner is not one of the match participants, or contradicts the scores"""
    pass


class ParticipantNotInTournament(TournamentTrackerException):
    """Match references a participant of another tournament"""
    pass


class InvalidSchedule(TournamentTrackerException):
    """Generated schedule breaks a pairing invariant"""
    pass


# ============ Storage failures ============

class ScheduleRegenerationFailed(TournamentTrackerException):
    """
    Storage failed while replacing the schedule.

    The transaction has been rolled back, so the previous schedule is still
    in place. Callers retry the whole operation.
    """
    def __init__(self, tournament_id):
        self.tournament_id = tournament_id
        super().__init__(f"Failed to regenerate schedule for tournament {tournament_id}")
