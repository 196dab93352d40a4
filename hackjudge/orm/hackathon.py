"""
hackjudge/orm/hackathon.py
Hackathon, Project and Judge records.

Hackathon and project ids are append-only integer handles: a hackathon id is
its position in the global sequence and a project id is its position within
the hackathon. Neither is ever reused.
"""
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer,
    String, Text, event, inspect
)

from hackjudge.orm.base import Base


class ImmutableRecordError(Exception):
    """Raised when an append-only record is modified or deleted."""
    pass


class Hackathon(Base):
    """
    A time-boxed judging event owned by a single organizer.

    ``is_active`` is never stored; it is recomputed from the window against
    the caller-supplied clock on every read.
    """
    __tablename__ = "hackathons"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    organizer = Column(String(128), nullable=False, index=True)

    scores_aggregated = Column(Boolean, nullable=False, default=False)
    rankings_published = Column(Boolean, nullable=False, default=False)

    project_count = Column(Integer, nullable=False, default=0)
    judge_count = Column(Integer, nullable=False, default=0)
    aggregated_project_count = Column(Integer, nullable=False, default=0)

    final_standings_hash = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_hackathon_window"),
        CheckConstraint(
            "NOT rankings_published OR scores_aggregated",
            name="ck_published_requires_aggregated"
        ),
        CheckConstraint(
            "aggregated_project_count <= project_count",
            name="ck_aggregated_within_projects"
        ),
    )

    def is_active(self, now: datetime) -> bool:
        return self.start_time <= now <= self.end_time

    @property
    def aggregation_started(self) -> bool:
        return bool(self.scores_aggregated) or self.aggregated_project_count > 0

    def to_dict(self, now: datetime) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "organizer": self.organizer,
            "is_active": self.is_active(now),
            "scores_aggregated": bool(self.scores_aggregated),
            "rankings_published": bool(self.rankings_published),
            "project_count": self.project_count,
            "judge_count": self.judge_count,
            "aggregated_project_count": self.aggregated_project_count,
            "final_standings_hash": self.final_standings_hash,
        }


class Project(Base):
    """A team's entry. Only ``public_rank`` may change after registration."""
    __tablename__ = "projects"

    hackathon_id = Column(
        Integer,
        ForeignKey("hackathons.id", ondelete="RESTRICT"),
        primary_key=True
    )
    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    github_url = Column(String(512), nullable=False, default="")
    demo_url = Column(String(512), nullable=False, default="")
    team_lead = Column(String(128), nullable=False)
    is_registered = Column(Boolean, nullable=False, default=True)
    public_rank = Column(Integer, nullable=False, default=0)
    registered_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("public_rank >= 0", name="ck_project_rank_non_negative"),
        Index("idx_project_team_lead", "hackathon_id", "team_lead"),
    )


class Judge(Base):
    """
    A judge appointed by the organizer.

    Completeness is derived: a judge has submitted all scores when
    ``projects_scored`` equals the hackathon's current ``project_count``.
    """
    __tablename__ = "judges"

    hackathon_id = Column(
        Integer,
        ForeignKey("hackathons.id", ondelete="RESTRICT"),
        primary_key=True
    )
    address = Column(String(128), primary_key=True)
    registration_index = Column(Integer, nullable=False)
    is_registered = Column(Boolean, nullable=False, default=True)
    projects_scored = Column(Integer, nullable=False, default=0)
    registered_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("projects_scored >= 0", name="ck_judge_scored_non_negative"),
        Index("idx_judge_order", "hackathon_id", "registration_index"),
    )

    def has_submitted_all_scores(self, project_count: int) -> bool:
        return self.projects_scored == project_count

    def to_dict(self, project_count: int) -> Dict[str, Any]:
        return {
            "hackathon_id": self.hackathon_id,
            "address": self.address,
            "is_registered": bool(self.is_registered),
            "projects_scored": self.projects_scored,
            "has_submitted_all_scores": self.has_submitted_all_scores(project_count),
        }


@event.listens_for(Project, "before_update")
def prevent_project_update(mapper, connection, target):
    """Projects are immutable except for their public rank."""
    state = inspect(target)
    changed = [
        attr.key for attr in state.attrs
        if attr.key != "public_rank" and attr.history.has_changes()
    ]
    if changed:
        raise ImmutableRecordError(
            f"Project {target.hackathon_id}/{target.id} is immutable; "
            f"attempted to change {', '.join(sorted(changed))}"
        )


@event.listens_for(Project, "before_delete")
def prevent_project_delete(mapper, connection, target):
    raise ImmutableRecordError("Projects are append-only. Deletions are prohibited.")


@event.listens_for(Hackathon, "before_delete")
def prevent_hackathon_delete(mapper, connection, target):
    raise ImmutableRecordError("Hackathons are append-only. Deletions are prohibited.")
