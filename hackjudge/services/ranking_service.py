"""
Ranking Publisher.

The organizer decrypts aggregates off-chain, decides the order and submits it
as a permutation of project ids. Publication assigns public ranks, freezes
them behind a standings hash and cannot be undone.
"""
import hashlib
import hmac
import json
import logging
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from hackjudge.errors import InvalidPermutationError
from hackjudge.orm.hackathon import Hackathon, Project
from hackjudge.services.entity_store import EntityStore
from hackjudge.services.registration_service import require_organizer
from hackjudge.state_machines.hackathon_lifecycle import HackathonLifecycle

logger = logging.getLogger(__name__)


class RankingService:

    @staticmethod
    def _validate_permutation(hackathon: Hackathon, project_ids: Sequence[int]) -> None:
        expected = list(range(hackathon.project_count))
        if len(project_ids) != hackathon.project_count or sorted(project_ids) != expected:
            raise InvalidPermutationError(
                f"Rankings must list every project of hackathon {hackathon.id} exactly once",
                details={
                    "hackathon_id": hackathon.id,
                    "project_count": hackathon.project_count,
                    "project_ids": list(project_ids),
                }
            )

    @staticmethod
    def _compute_standings_hash(hackathon_id: int, rankings: List[Dict[str, Any]]) -> str:
        """
        Compute SHA256 hash of final standings.

        Deterministic serialization for verification.
        """
        sorted_rankings = sorted(rankings, key=lambda r: r["rank"])
        data = {
            "hackathon_id": hackathon_id,
            "rankings": [
                {"project_id": r["project_id"], "rank": r["rank"], "name": r["name"]}
                for r in sorted_rankings
            ]
        }
        json_str = json.dumps(data, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(json_str.encode('utf-8')).hexdigest()

    @staticmethod
    def _rankings_data(projects: List[Project]) -> List[Dict[str, Any]]:
        return [
            {"project_id": p.id, "rank": p.public_rank, "name": p.name}
            for p in projects
        ]

    @staticmethod
    async def publish_rankings(
        db: AsyncSession,
        caller: str,
        hackathon_id: int,
        project_ids: Sequence[int]
    ) -> Hackathon:
        """
        Publish final standings. Organizer only.

        Args:
            db: Database session (inside the ledger transaction)
            caller: Must be the organizer
            hackathon_id: Hackathon id
            project_ids: Project ids from first place to last

        Returns:
            Updated Hackathon
        """
        hackathon = await EntityStore.get_hackathon(db, hackathon_id)
        require_organizer(hackathon, caller)
        HackathonLifecycle.ensure_can_publish(hackathon)
        RankingService._validate_permutation(hackathon, project_ids)

        projects = {p.id: p for p in await EntityStore.list_projects(db, hackathon_id)}
        for position, project_id in enumerate(project_ids):
            projects[project_id].public_rank = position + 1

        hackathon.rankings_published = True
        hackathon.final_standings_hash = RankingService._compute_standings_hash(
            hackathon_id, RankingService._rankings_data(list(projects.values()))
        )
        await db.flush()

        logger.info(f"Published rankings for hackathon {hackathon_id}: {list(project_ids)}")
        return hackathon

    @staticmethod
    async def verify_standings_integrity(db: AsyncSession, hackathon_id: int) -> Tuple[bool, str]:
        """
        Recompute the standings hash and compare it to the stored value.

        Returns:
            Tuple of (is_valid, computed_hash); computed_hash is "" when the
            hackathon has not been published
        """
        hackathon = await EntityStore.get_hackathon(db, hackathon_id)
        if not hackathon.final_standings_hash:
            return False, ""

        projects = await EntityStore.list_projects(db, hackathon_id)
        computed = RankingService._compute_standings_hash(
            hackathon_id, RankingService._rankings_data(projects)
        )
        return hmac.compare_digest(computed, hackathon.final_standings_hash), computed
