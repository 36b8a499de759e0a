"""
ORM models

Tables:
- tournaments: a round-robin tournament and its lifecycle status
- participants: registrations, owned by a tournament
- matches: scheduled pairings and their results, owned by a tournament
- event_logs: append-only audit trail
"""
import enum
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Enum,
    ForeignKey,
    JSON,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from database import Base


class TournamentStatus(str, enum.Enum):
    REGISTRATION = "registration"
    ACTIVE = "active"
    COMPLETED = "completed"


class TournamentFormat(str, enum.Enum):
    ROUND_ROBIN = "round-robin"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Tournament(Base):
    __tablename__ = "tournaments"
    __table_args__ = (
        CheckConstraint("rounds >= 1", name="ck_tournaments_rounds_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    format = Column(
        Enum(TournamentFormat, values_callable=_enum_values),
        nullable=False,
        default=TournamentFormat.ROUND_ROBIN
    )
    rounds = Column(Integer, nullable=False, default=10)
    round_duration_weeks = Column(Integer, nullable=False, default=2)
    registration_deadline = Column(DateTime, nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    status = Column(
        Enum(TournamentStatus, values_callable=_enum_values),
        nullable=False,
        default=TournamentStatus.REGISTRATION
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    participants = relationship(
        "Participant",
        back_populates="tournament",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Participant.id"
    )
    matches = relationship(
        "Match",
        back_populates="tournament",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    def __repr__(self):
        return f"Tournament(id={self.id}, name={self.name!r}, status={self.status})"


class Participant(Base):
    __tablename__ = "participants"
    __table_args__ = (
        UniqueConstraint("tournament_id", "email", name="uq_participants_tournament_email"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    tournament_id = Column(
        Integer,
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=False)
    nav_ident = Column(String(50), nullable=True)
    slack_handle = Column(String(100), nullable=True)
    registered_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    tournament = relationship("Tournament", back_populates="participants")

    def __repr__(self):
        return f"Participant(id={self.id}, name={self.name!r})"


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        CheckConstraint("player1_id != player2_id", name="ck_matches_distinct_players"),
        Index("ix_matches_tournament_round", "tournament_id", "round"),
        # Regenerated matches never reuse the ids of deleted ones
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    tournament_id = Column(
        Integer,
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False
    )
    round = Column(Integer, nullable=False)
    player1_id = Column(
        Integer,
        ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False
    )
    player2_id = Column(
        Integer,
        ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False
    )
    player1_score = Column(Integer, nullable=True)
    player2_score = Column(Integer, nullable=True)
    winner_id = Column(Integer, ForeignKey("participants.id"), nullable=True)
    played_at = Column(DateTime, nullable=True)
    reported_by = Column(String(320), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    tournament = relationship("Tournament", back_populates="matches")
    player1 = relationship("Participant", foreign_keys=[player1_id])
    player2 = relationship("Participant", foreign_keys=[player2_id])

    def involves(self, participant_id: int) -> bool:
        return participant_id in (self.player1_id, self.player2_id)

    def __repr__(self):
        return (
            f"Match(id={self.id}, round={self.round}, "
            f"{self.player1_id} vs {self.player2_id}, winner={self.winner_id})"
        )


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tournament_id = Column(
        Integer,
        ForeignKey("tournaments.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    event_type = Column(String(50), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
