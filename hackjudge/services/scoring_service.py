"""
Scoring Service.

Accepts opaque encrypted scores. A judge scores each project at most once;
there is no revision path.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from hackjudge.crypto.combiner import ProofVerifier
from hackjudge.errors import (
    DuplicateScoreError, InvalidProofError, NotJudgeError, UnknownProjectError
)
from hackjudge.orm.hackathon import Judge
from hackjudge.orm.score import Score
from hackjudge.services.entity_store import EntityStore
from hackjudge.state_machines.hackathon_lifecycle import HackathonLifecycle

logger = logging.getLogger(__name__)


class ScoringService:

    @staticmethod
    async def submit_score(
        db: AsyncSession,
        verifier: ProofVerifier,
        caller: str,
        hackathon_id: int,
        project_id: int,
        encrypted_score: bytes,
        proof: bytes
    ) -> Judge:
        """
        Record the caller's encrypted score for a project.

        Checks run in this order: judge role, aggregation gate, project id,
        duplicate pair, proof. Nothing is written unless all pass.

        Returns:
            The judge record with its updated projects_scored counter
        """
        hackathon = await EntityStore.get_hackathon(db, hackathon_id)

        judge = await EntityStore.find_judge(db, hackathon_id, caller)
        if judge is None or not judge.is_registered:
            raise NotJudgeError(hackathon_id, caller)

        HackathonLifecycle.ensure_can_score(hackathon)

        if project_id < 0 or project_id >= hackathon.project_count:
            raise UnknownProjectError(hackathon_id, project_id)

        if await EntityStore.score_exists(db, hackathon_id, project_id, caller):
            raise DuplicateScoreError(
                f"{caller} has already scored project {project_id} in hackathon {hackathon_id}",
                details={"hackathon_id": hackathon_id, "project_id": project_id, "judge": caller}
            )

        if not verifier.verify(encrypted_score, proof):
            raise InvalidProofError(
                "Score proof was rejected by the verifier",
                details={"hackathon_id": hackathon_id, "project_id": project_id, "judge": caller}
            )

        db.add(Score(
            hackathon_id=hackathon_id,
            project_id=project_id,
            judge_address=caller,
            encrypted_payload=bytes(encrypted_score),
            proof=bytes(proof),
        ))
        judge.projects_scored += 1
        await db.flush()

        logger.info(
            f"Judge {caller} scored project {project_id} in hackathon {hackathon_id} "
            f"({judge.projects_scored}/{hackathon.project_count})"
        )
        return judge
