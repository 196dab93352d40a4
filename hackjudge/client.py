"""
JudgingClient: one method per public operation.

Every write maps onto a single Ledger.submit_transaction call and every read
onto a single Ledger.query call. The caller identity is supplied per call by
whatever identity layer sits in front (HTTP header, CLI flag, test fixture).
"""
from datetime import datetime
from typing import List, Optional, Sequence

from hackjudge.clock import Clock, utcnow
from hackjudge.config.settings import Settings
from hackjudge.crypto.combiner import Combiner, ProofVerifier
from hackjudge.crypto.mock_cipher import MockAdditiveCipher
from hackjudge.database import Database
from hackjudge.ledger import Ledger, LedgerOp, LedgerView
from hackjudge.schemas.hackathon import (
    AggregateView, HackathonView, JudgeView, LedgerChainView, LifecycleView,
    ProjectView, Receipt, StandingsIntegrityView
)


def create_ledger(
    settings: Settings,
    database: Database,
    combiner: Optional[Combiner] = None,
    verifier: Optional[ProofVerifier] = None,
    clock: Clock = utcnow
) -> Ledger:
    """Wire a ledger, defaulting to the mock additive cipher for both collaborators."""
    if combiner is None or verifier is None:
        cipher = MockAdditiveCipher.from_settings(settings)
        combiner = combiner or cipher
        verifier = verifier or cipher
    return Ledger(database, combiner, verifier, clock=clock)


class JudgingClient:
    """Typed wrapper over the ledger's transaction and query calls."""

    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def create_hackathon(
        self,
        caller: str,
        name: str,
        description: str,
        start_time: datetime,
        end_time: datetime
    ) -> Receipt:
        return await self.ledger.submit_transaction(caller, LedgerOp.CREATE_HACKATHON, {
            "name": name,
            "description": description,
            "start_time": start_time,
            "end_time": end_time,
        })

    async def register_judge(self, caller: str, hackathon_id: int, address: str) -> Receipt:
        return await self.ledger.submit_transaction(caller, LedgerOp.REGISTER_JUDGE, {
            "hackathon_id": hackathon_id,
            "address": address,
        })

    async def register_project(
        self,
        caller: str,
        hackathon_id: int,
        name: str,
        description: str = "",
        github_url: str = "",
        demo_url: str = ""
    ) -> Receipt:
        return await self.ledger.submit_transaction(caller, LedgerOp.REGISTER_PROJECT, {
            "hackathon_id": hackathon_id,
            "name": name,
            "description": description,
            "github_url": github_url,
            "demo_url": demo_url,
        })

    async def submit_score(
        self,
        caller: str,
        hackathon_id: int,
        project_id: int,
        encrypted_score: bytes,
        proof: bytes
    ) -> Receipt:
        return await self.ledger.submit_transaction(caller, LedgerOp.SUBMIT_SCORE, {
            "hackathon_id": hackathon_id,
            "project_id": project_id,
            "encrypted_score": encrypted_score,
            "proof": proof,
        })

    async def aggregate_scores(self, caller: str, hackathon_id: int, project_id: int) -> Receipt:
        return await self.ledger.submit_transaction(caller, LedgerOp.AGGREGATE_SCORES, {
            "hackathon_id": hackathon_id,
            "project_id": project_id,
        })

    async def publish_rankings(self, caller: str, hackathon_id: int, project_ids: Sequence[int]) -> Receipt:
        return await self.ledger.submit_transaction(caller, LedgerOp.PUBLISH_RANKINGS, {
            "hackathon_id": hackathon_id,
            "project_ids": list(project_ids),
        })

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_hackathon_count(self) -> int:
        return await self.ledger.query(LedgerView.HACKATHON_COUNT)

    async def get_hackathon(self, hackathon_id: int) -> HackathonView:
        return await self.ledger.query(LedgerView.HACKATHON, {"hackathon_id": hackathon_id})

    async def list_hackathons(self, offset: int = 0, limit: Optional[int] = None) -> List[HackathonView]:
        return await self.ledger.query(LedgerView.HACKATHONS, {"offset": offset, "limit": limit})

    async def get_project(self, hackathon_id: int, project_id: int) -> ProjectView:
        return await self.ledger.query(LedgerView.PROJECT, {
            "hackathon_id": hackathon_id,
            "project_id": project_id,
        })

    async def list_projects(self, hackathon_id: int) -> List[ProjectView]:
        return await self.ledger.query(LedgerView.PROJECTS, {"hackathon_id": hackathon_id})

    async def get_judge(self, hackathon_id: int, address: str) -> JudgeView:
        return await self.ledger.query(LedgerView.JUDGE, {"hackathon_id": hackathon_id, "address": address})

    async def list_judges(self, hackathon_id: int) -> List[JudgeView]:
        return await self.ledger.query(LedgerView.JUDGES, {"hackathon_id": hackathon_id})

    async def get_judge_addresses(self, hackathon_id: int) -> List[str]:
        return await self.ledger.query(LedgerView.JUDGE_ADDRESSES, {"hackathon_id": hackathon_id})

    async def are_scores_ready_for_aggregation(self, hackathon_id: int) -> bool:
        return await self.ledger.query(LedgerView.SCORES_READY, {"hackathon_id": hackathon_id})

    async def has_judge_submitted_all_scores(self, hackathon_id: int, address: str) -> bool:
        return await self.ledger.query(LedgerView.JUDGE_COMPLETE, {
            "hackathon_id": hackathon_id,
            "address": address,
        })

    async def get_project_rankings(self, hackathon_id: int) -> List[int]:
        return await self.ledger.query(LedgerView.PROJECT_RANKINGS, {"hackathon_id": hackathon_id})

    async def get_aggregate(self, hackathon_id: int, project_id: int) -> Optional[AggregateView]:
        return await self.ledger.query(LedgerView.AGGREGATE, {
            "hackathon_id": hackathon_id,
            "project_id": project_id,
        })

    async def get_lifecycle(self, hackathon_id: int) -> LifecycleView:
        return await self.ledger.query(LedgerView.LIFECYCLE, {"hackathon_id": hackathon_id})

    async def verify_standings(self, hackathon_id: int) -> StandingsIntegrityView:
        return await self.ledger.query(LedgerView.STANDINGS_INTEGRITY, {"hackathon_id": hackathon_id})

    async def verify_ledger_chain(self) -> LedgerChainView:
        return await self.ledger.query(LedgerView.LEDGER_CHAIN)
