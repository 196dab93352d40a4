"""
hackjudge/orm/score.py
Encrypted judge scores and per-project aggregates.

Both tables are write-once. Payloads are opaque bytes produced by the
encryption collaborator; nothing here interprets them.
"""
from datetime import datetime

from sqlalchemy import (
    Column, DateTime, ForeignKeyConstraint, Integer, LargeBinary, String, event
)

from hackjudge.orm.base import Base
from hackjudge.orm.hackathon import ImmutableRecordError


class Score(Base):
    """One judge's encrypted score for one project."""
    __tablename__ = "scores"

    hackathon_id = Column(Integer, primary_key=True)
    project_id = Column(Integer, primary_key=True)
    judge_address = Column(String(128), primary_key=True)
    encrypted_payload = Column(LargeBinary, nullable=False)
    proof = Column(LargeBinary, nullable=False)
    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ["hackathon_id", "project_id"],
            ["projects.hackathon_id", "projects.id"],
            ondelete="RESTRICT"
        ),
        ForeignKeyConstraint(
            ["hackathon_id", "judge_address"],
            ["judges.hackathon_id", "judges.address"],
            ondelete="RESTRICT"
        ),
    )


class Aggregate(Base):
    """Homomorphic sum of every judge's score for a project."""
    __tablename__ = "aggregates"

    hackathon_id = Column(Integer, primary_key=True)
    project_id = Column(Integer, primary_key=True)
    payload = Column(LargeBinary, nullable=False)
    score_count = Column(Integer, nullable=False)
    aggregated_by = Column(String(128), nullable=False)
    aggregated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ["hackathon_id", "project_id"],
            ["projects.hackathon_id", "projects.id"],
            ondelete="RESTRICT"
        ),
    )

    def to_dict(self):
        return {
            "hackathon_id": self.hackathon_id,
            "project_id": self.project_id,
            "payload": self.payload.hex(),
            "score_count": self.score_count,
            "aggregated_by": self.aggregated_by,
            "aggregated_at": self.aggregated_at.isoformat() if self.aggregated_at else None,
        }


@event.listens_for(Score, "before_update")
def prevent_score_update(mapper, connection, target):
    """Scores are immutable once written."""
    raise ImmutableRecordError("Score is write-once. Updates are prohibited.")


@event.listens_for(Score, "before_delete")
def prevent_score_delete(mapper, connection, target):
    raise ImmutableRecordError("Score is write-once. Deletions are prohibited.")


@event.listens_for(Aggregate, "before_update")
def prevent_aggregate_update(mapper, connection, target):
    raise ImmutableRecordError("Aggregate is write-once. Updates are prohibited.")


@event.listens_for(Aggregate, "before_delete")
def prevent_aggregate_delete(mapper, connection, target):
    raise ImmutableRecordError("Aggregate is write-once. Deletions are prohibited.")
