"""
End-to-end judging workflow.

Runs one hackathon from creation to published rankings against any
JudgingClient:

1. Create the hackathon with a window open around "now"
2. Register projects and judges
3. Every judge submits an encrypted score for every project (batched)
4. Aggregate each project once the readiness predicate holds
5. Decode the aggregates off-chain and publish by descending total
"""
import logging
import random
from datetime import timedelta
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from hackjudge.client import JudgingClient
from hackjudge.crypto.mock_cipher import MockAdditiveCipher
from hackjudge.errors import NotReadyError
from hackjudge.workflows.batch_scoring import BatchResult, ScoreSubmission, submit_scores_batch

logger = logging.getLogger(__name__)

DEFAULT_PROJECTS = [
    {
        "name": "FHE Privacy Wallet",
        "description": "A privacy-preserving wallet that keeps transaction amounts encrypted",
        "github_url": "https://github.com/example/fhe-wallet",
        "demo_url": "https://demo.example.com/fhe-wallet",
    },
    {
        "name": "Confidential Voting System",
        "description": "Votes stay encrypted until the final tally",
        "github_url": "https://github.com/example/confidential-voting",
        "demo_url": "https://demo.example.com/confidential-voting",
    },
    {
        "name": "Private ML Training",
        "description": "Model training over encrypted data",
        "github_url": "https://github.com/example/private-ml",
        "demo_url": "https://demo.example.com/private-ml",
    },
]

DEFAULT_JUDGES = ["judge-alice", "judge-bob"]


class WorkflowResult(BaseModel):
    hackathon_id: int
    project_ids: List[int]
    judges: List[str]
    batches: List[BatchResult] = Field(default_factory=list)
    totals: Dict[int, int] = Field(default_factory=dict)
    rankings: List[int] = Field(default_factory=list)
    final_standings_hash: Optional[str] = None


def rank_by_total(totals: Dict[int, int]) -> List[int]:
    """Project ids by descending total; ties keep the lower project id first."""
    return sorted(totals, key=lambda project_id: (-totals[project_id], project_id))


async def run_complete_workflow(
    client: JudgingClient,
    cipher: MockAdditiveCipher,
    organizer: str = "organizer",
    judges: Sequence[str] = DEFAULT_JUDGES,
    projects: Sequence[Dict[str, str]] = DEFAULT_PROJECTS,
    scores: Optional[Dict[str, Sequence[int]]] = None,
    seed: Optional[int] = None,
    name: str = "Encrypted Judging Demo"
) -> WorkflowResult:
    """
    Run the full lifecycle of one hackathon.

    Args:
        client: Judging client
        cipher: Cipher used to encode scores and decode aggregates
        organizer: Organizer identity; also the team lead of every project
        judges: Judge identities
        projects: Project fields (name, description, github_url, demo_url)
        scores: Plain scores per judge, one per project in order. Random
            scores in the cipher's range are drawn when omitted.
        seed: Seed for the random scores
        name: Hackathon name

    Returns:
        WorkflowResult with decoded totals and the published rankings

    Raises:
        JudgingError: Any rejected step other than individual score submissions
    """
    now = client.ledger.now()
    receipt = await client.create_hackathon(
        organizer,
        name=name,
        description=f"{len(projects)} projects judged by {len(judges)} judges",
        start_time=now - timedelta(minutes=1),
        end_time=now + timedelta(hours=2),
    )
    hackathon_id = receipt.result["hackathon_id"]
    logger.info(f"Step 1: created hackathon {hackathon_id}")

    project_ids = []
    for project in projects:
        receipt = await client.register_project(organizer, hackathon_id, **project)
        project_ids.append(receipt.result["project_id"])
    logger.info(f"Step 2: registered {len(project_ids)} projects")

    for judge in judges:
        await client.register_judge(organizer, hackathon_id, judge)
    logger.info(f"Step 3: registered {len(judges)} judges")

    rng = random.Random(seed)
    result = WorkflowResult(hackathon_id=hackathon_id, project_ids=project_ids, judges=list(judges))

    for judge in judges:
        if scores is not None:
            plain_scores = list(scores[judge])
        else:
            plain_scores = [rng.randint(cipher.score_min, cipher.score_max) for _ in project_ids]

        submissions = []
        for project_id, plain in zip(project_ids, plain_scores):
            payload, proof = cipher.encode(plain)
            submissions.append(ScoreSubmission(project_id=project_id, encrypted_score=payload, proof=proof))

        result.batches.append(await submit_scores_batch(client, judge, hackathon_id, submissions))
    logger.info("Step 4: submitted scores")

    if not await client.are_scores_ready_for_aggregation(hackathon_id):
        raise NotReadyError(
            f"Hackathon {hackathon_id} is not ready for aggregation after scoring",
            details={"hackathon_id": hackathon_id}
        )

    for project_id in project_ids:
        await client.aggregate_scores(organizer, hackathon_id, project_id)
        aggregate = await client.get_aggregate(hackathon_id, project_id)
        result.totals[project_id] = cipher.decode(bytes.fromhex(aggregate.payload))
    logger.info(f"Step 5: aggregated {len(project_ids)} projects, totals {result.totals}")

    result.rankings = rank_by_total(result.totals)
    receipt = await client.publish_rankings(organizer, hackathon_id, result.rankings)
    result.final_standings_hash = receipt.result["final_standings_hash"]
    logger.info(f"Step 6: published rankings {result.rankings}")

    return result
