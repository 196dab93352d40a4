"""
Aggregation Engine.

Combines every judge's encrypted score for a project into one aggregate
without decrypting anything. The combine operator is injected; because it is
associative and commutative the result does not depend on the order in which
judges submitted.
"""
import logging
from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from hackjudge.crypto.combiner import Combiner
from hackjudge.errors import UnknownProjectError
from hackjudge.orm.hackathon import Hackathon
from hackjudge.orm.score import Aggregate
from hackjudge.services.entity_store import EntityStore
from hackjudge.services.registration_service import require_organizer
from hackjudge.state_machines.hackathon_lifecycle import HackathonLifecycle

logger = logging.getLogger(__name__)


class AggregationService:

    @staticmethod
    async def is_ready(db: AsyncSession, hackathon: Hackathon) -> bool:
        """Readiness predicate for an already loaded hackathon."""
        if hackathon.judge_count == 0 or hackathon.project_count == 0:
            return False
        return await EntityStore.incomplete_judge_count(db, hackathon) == 0

    @staticmethod
    async def aggregate_scores(
        db: AsyncSession,
        combiner: Combiner,
        caller: str,
        hackathon_id: int,
        project_id: int
    ) -> Tuple[Aggregate, bool]:
        """
        Aggregate all scores for one project. Organizer only.

        Calling this for a project that already has an aggregate returns the
        stored aggregate and changes nothing, so partially applied batches can
        simply be retried.

        Returns:
            Tuple of (aggregate, created)
        """
        hackathon = await EntityStore.get_hackathon(db, hackathon_id)
        require_organizer(hackathon, caller)

        if project_id < 0 or project_id >= hackathon.project_count:
            raise UnknownProjectError(hackathon_id, project_id)

        existing = await EntityStore.find_aggregate(db, hackathon_id, project_id)
        if existing is not None:
            logger.info(f"Project {project_id} in hackathon {hackathon_id} already aggregated; no-op")
            return existing, False

        ready = await AggregationService.is_ready(db, hackathon)
        HackathonLifecycle.ensure_can_aggregate(hackathon, ready)

        scores = await EntityStore.scores_for_project(db, hackathon_id, project_id)
        payload = combiner.combine_all(score.encrypted_payload for score in scores)

        aggregate = Aggregate(
            hackathon_id=hackathon_id,
            project_id=project_id,
            payload=payload,
            score_count=len(scores),
            aggregated_by=caller,
        )
        db.add(aggregate)

        hackathon.aggregated_project_count += 1
        if hackathon.aggregated_project_count == hackathon.project_count:
            hackathon.scores_aggregated = True
            logger.info(f"All {hackathon.project_count} projects aggregated for hackathon {hackathon_id}")

        await db.flush()

        logger.info(
            f"Aggregated {len(scores)} scores for project {project_id} in hackathon {hackathon_id} "
            f"({hackathon.aggregated_project_count}/{hackathon.project_count})"
        )
        return aggregate, True
