"""
Entity Store.

Canonical access to hackathons, projects, judges, scores and aggregates.
Loaders raise the matching Unknown* error instead of returning None so that
callers inside a transaction can rely on the record existing.

Individual scores are only reachable through scores_for_project(), which the
aggregation engine uses; no public view exposes a single judge's payload.
"""
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hackjudge.errors import UnknownHackathonError, UnknownProjectError
from hackjudge.orm.hackathon import Hackathon, Judge, Project
from hackjudge.orm.score import Aggregate, Score

logger = logging.getLogger(__name__)


class EntityStore:
    """Query helpers over the judging tables."""

    # ==========================================================================
    # Hackathons
    # ==========================================================================

    @staticmethod
    async def hackathon_count(db: AsyncSession) -> int:
        result = await db.execute(select(func.count(Hackathon.id)))
        return result.scalar() or 0

    @staticmethod
    async def get_hackathon(db: AsyncSession, hackathon_id: int) -> Hackathon:
        result = await db.execute(select(Hackathon).where(Hackathon.id == hackathon_id))
        hackathon = result.scalar_one_or_none()
        if hackathon is None:
            raise UnknownHackathonError(hackathon_id)
        return hackathon

    @staticmethod
    async def list_hackathons(db: AsyncSession, offset: int = 0, limit: Optional[int] = None) -> List[Hackathon]:
        query = select(Hackathon).order_by(Hackathon.id).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    # ==========================================================================
    # Projects
    # ==========================================================================

    @staticmethod
    async def get_project(db: AsyncSession, hackathon_id: int, project_id: int) -> Project:
        result = await db.execute(
            select(Project).where(
                Project.hackathon_id == hackathon_id,
                Project.id == project_id
            )
        )
        project = result.scalar_one_or_none()
        if project is None:
            raise UnknownProjectError(hackathon_id, project_id)
        return project

    @staticmethod
    async def list_projects(db: AsyncSession, hackathon_id: int) -> List[Project]:
        result = await db.execute(
            select(Project)
            .where(Project.hackathon_id == hackathon_id)
            .order_by(Project.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def project_rankings(db: AsyncSession, hackathon_id: int) -> List[int]:
        """Project ids ordered by public rank; empty until rankings are published."""
        result = await db.execute(
            select(Project.id)
            .where(Project.hackathon_id == hackathon_id, Project.public_rank > 0)
            .order_by(Project.public_rank)
        )
        return list(result.scalars().all())

    # ==========================================================================
    # Judges
    # ==========================================================================

    @staticmethod
    async def find_judge(db: AsyncSession, hackathon_id: int, address: str) -> Optional[Judge]:
        result = await db.execute(
            select(Judge).where(
                Judge.hackathon_id == hackathon_id,
                Judge.address == address
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_judges(db: AsyncSession, hackathon_id: int) -> List[Judge]:
        result = await db.execute(
            select(Judge)
            .where(Judge.hackathon_id == hackathon_id)
            .order_by(Judge.registration_index)
        )
        return list(result.scalars().all())

    @staticmethod
    async def judge_addresses(db: AsyncSession, hackathon_id: int) -> List[str]:
        result = await db.execute(
            select(Judge.address)
            .where(Judge.hackathon_id == hackathon_id)
            .order_by(Judge.registration_index)
        )
        return list(result.scalars().all())

    @staticmethod
    async def incomplete_judge_count(db: AsyncSession, hackathon: Hackathon) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Judge)
            .where(
                Judge.hackathon_id == hackathon.id,
                Judge.is_registered.is_(True),
                Judge.projects_scored != hackathon.project_count
            )
        )
        return result.scalar() or 0

    # ==========================================================================
    # Scores and aggregates
    # ==========================================================================

    @staticmethod
    async def score_exists(db: AsyncSession, hackathon_id: int, project_id: int, judge_address: str) -> bool:
        result = await db.execute(
            select(func.count())
            .select_from(Score)
            .where(
                Score.hackathon_id == hackathon_id,
                Score.project_id == project_id,
                Score.judge_address == judge_address
            )
        )
        return (result.scalar() or 0) > 0

    @staticmethod
    async def scores_for_project(db: AsyncSession, hackathon_id: int, project_id: int) -> List[Score]:
        """All scores for a project, in judge registration order."""
        result = await db.execute(
            select(Score)
            .join(
                Judge,
                (Judge.hackathon_id == Score.hackathon_id) & (Judge.address == Score.judge_address)
            )
            .where(Score.hackathon_id == hackathon_id, Score.project_id == project_id)
            .order_by(Judge.registration_index)
        )
        return list(result.scalars().all())

    @staticmethod
    async def find_aggregate(db: AsyncSession, hackathon_id: int, project_id: int) -> Optional[Aggregate]:
        result = await db.execute(
            select(Aggregate).where(
                Aggregate.hackathon_id == hackathon_id,
                Aggregate.project_id == project_id
            )
        )
        return result.scalar_one_or_none()
