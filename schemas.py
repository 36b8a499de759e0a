"""
Request / response schemas

Patch models list exactly the fields an update may touch; anything else in
the request body is rejected (extra="forbid").
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import TournamentFormat, TournamentStatus

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Stored datetimes are naive UTC
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ============ Tournament ============

class TournamentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    format: TournamentFormat = TournamentFormat.ROUND_ROBIN
    rounds: Optional[int] = Field(None, ge=1)
    round_duration_weeks: Optional[int] = Field(None, ge=1)
    registration_deadline: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    normalize_dates = field_validator(
        "registration_deadline", "start_date", "end_date"
    )(_to_naive_utc)


class TournamentPatch(BaseModel):
    """
    Partial tournament update.

    Only fields present in the request are applied (exclude_unset).
    `status` is routed through the state machine, not written directly.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    format: Optional[TournamentFormat] = None
    rounds: Optional[int] = Field(None, ge=1)
    round_duration_weeks: Optional[int] = Field(None, ge=1)
    registration_deadline: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[TournamentStatus] = None

    normalize_dates = field_validator(
        "registration_deadline", "start_date", "end_date"
    )(_to_naive_utc)

    @field_validator("name", "format", "rounds", "round_duration_weeks", "status")
    @classmethod
    def not_null(cls, value):
        # Required columns: they may be omitted but not cleared
        if value is None:
            raise ValueError("field cannot be null")
        return value


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    format: TournamentFormat
    rounds: int
    round_duration_weeks: int
    registration_deadline: Optional[datetime]
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    status: TournamentStatus
    created_at: datetime


# ============ Participant ============

class ParticipantRegister(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    tournament_id: int
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=320)
    nav_ident: Optional[str] = Field(None, max_length=50)
    slack_handle: Optional[str] = Field(None, max_length=100)


class ParticipantPatch(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN, max_length=320)
    nav_ident: Optional[str] = Field(None, max_length=50)
    slack_handle: Optional[str] = Field(None, max_length=100)

    @field_validator("name", "email")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    name: str
    email: str
    nav_ident: Optional[str]
    slack_handle: Optional[str]
    registered_at: datetime


class RegistrationResponse(BaseModel):
    participant_id: int
    message: str


# ============ Match ============

class MatchResultSubmit(BaseModel):
    """Result entry. Scores are non-negative integers; the winner is derived."""
    model_config = ConfigDict(extra="forbid")

    player1_score: int = Field(..., ge=0, strict=True)
    player2_score: int = Field(..., ge=0, strict=True)
    winner_id: Optional[int] = None
    played_at: Optional[datetime] = None

    normalize_played_at = field_validator("played_at")(_to_naive_utc)


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    round: int
    player1_id: int
    player2_id: int
    player1_score: Optional[int]
    player2_score: Optional[int]
    winner_id: Optional[int]
    played_at: Optional[datetime]
    reported_by: Optional[str]


class ScheduleResponse(BaseModel):
    tournament_id: int
    status: TournamentStatus
    match_count: int
    rounds: Dict[int, List[MatchResponse]]


# ============ Standings ============

class StandingResponse(BaseModel):
    participant_id: int
    name: str
    wins: int
    losses: int
    played: int


class TournamentDetailResponse(BaseModel):
    tournament: TournamentResponse
    participants: List[ParticipantResponse]
    matches: List[MatchResponse]
    standings: List[StandingResponse]


# ============ Misc ============

class UserResponse(BaseModel):
    name: str
    email: str
    nav_ident: str
    groups: List[str]
    is_admin: bool


class ActionResponse(BaseModel):
    status: str
