"""
Registration Service.

Creates hackathons and appends judges and projects to them. Judges and
projects may register interleaved in any order; both counters only grow.
"""
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from hackjudge.errors import AlreadyRegisteredError, InvalidWindowError, NotOrganizerError
from hackjudge.orm.hackathon import Hackathon, Judge, Project
from hackjudge.services.entity_store import EntityStore
from hackjudge.state_machines.hackathon_lifecycle import HackathonLifecycle

logger = logging.getLogger(__name__)


def require_organizer(hackathon: Hackathon, caller: str) -> None:
    if caller != hackathon.organizer:
        raise NotOrganizerError(hackathon.id, caller)


class RegistrationService:
    """Hackathon creation and judge / project registration."""

    @staticmethod
    async def create_hackathon(
        db: AsyncSession,
        caller: str,
        name: str,
        description: str,
        start_time: datetime,
        end_time: datetime
    ) -> Hackathon:
        """
        Create a hackathon owned by the caller.

        Args:
            db: Database session (inside the ledger transaction)
            caller: Identity that becomes the organizer
            name: Display name
            description: Free text
            start_time: Window start (naive UTC)
            end_time: Window end (naive UTC)

        Returns:
            Created Hackathon

        Raises:
            InvalidWindowError: If start_time >= end_time
        """
        if start_time >= end_time:
            raise InvalidWindowError(
                "Hackathon start must be before its end",
                details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()}
            )

        hackathon_id = await EntityStore.hackathon_count(db)

        hackathon = Hackathon(
            id=hackathon_id,
            name=name,
            description=description,
            start_time=start_time,
            end_time=end_time,
            organizer=caller,
            scores_aggregated=False,
            rankings_published=False,
            project_count=0,
            judge_count=0,
            aggregated_project_count=0,
        )
        db.add(hackathon)
        await db.flush()

        logger.info(f"Created hackathon {hackathon_id} '{name}' for organizer {caller}")
        return hackathon

    @staticmethod
    async def register_judge(
        db: AsyncSession,
        caller: str,
        hackathon_id: int,
        address: str
    ) -> Judge:
        """Appoint a judge. Organizer only."""
        hackathon = await EntityStore.get_hackathon(db, hackathon_id)
        require_organizer(hackathon, caller)
        HackathonLifecycle.ensure_can_register_judge(hackathon)

        existing = await EntityStore.find_judge(db, hackathon_id, address)
        if existing is not None:
            raise AlreadyRegisteredError(
                f"{address} is already a judge of hackathon {hackathon_id}",
                details={"hackathon_id": hackathon_id, "address": address}
            )

        judge = Judge(
            hackathon_id=hackathon_id,
            address=address,
            registration_index=hackathon.judge_count,
            is_registered=True,
            projects_scored=0,
        )
        db.add(judge)
        hackathon.judge_count += 1
        await db.flush()

        logger.info(f"Registered judge {address} for hackathon {hackathon_id} ({hackathon.judge_count} judges)")
        return judge

    @staticmethod
    async def register_project(
        db: AsyncSession,
        caller: str,
        hackathon_id: int,
        name: str,
        description: str,
        github_url: str,
        demo_url: str,
        now: datetime
    ) -> Project:
        """Register a project; the caller becomes its team lead."""
        hackathon = await EntityStore.get_hackathon(db, hackathon_id)
        HackathonLifecycle.ensure_can_register_project(hackathon, now)

        project = Project(
            hackathon_id=hackathon_id,
            id=hackathon.project_count,
            name=name,
            description=description,
            github_url=github_url,
            demo_url=demo_url,
            team_lead=caller,
            is_registered=True,
            public_rank=0,
        )
        db.add(project)
        hackathon.project_count += 1
        await db.flush()

        logger.info(f"Registered project {project.id} '{name}' in hackathon {hackathon_id} by {caller}")
        return project
