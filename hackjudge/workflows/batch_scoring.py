"""
Batch score submission.

Submissions are issued strictly one at a time, each awaited until the ledger
confirms it, so a batch never races itself for ordering. A rejected item is
recorded and the batch moves on; the core itself never retries.
"""
import logging
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from hackjudge.client import JudgingClient
from hackjudge.errors import JudgingError

logger = logging.getLogger(__name__)


class ScoreSubmission(BaseModel):
    project_id: int
    encrypted_score: bytes
    proof: bytes


class BatchItemResult(BaseModel):
    project_id: int
    success: bool
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
    message: Optional[str] = None


class BatchResult(BaseModel):
    """Success/failure tally for one batch."""
    hackathon_id: int
    judge: str
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    items: List[BatchItemResult] = Field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0


async def submit_scores_batch(
    client: JudgingClient,
    judge: str,
    hackathon_id: int,
    submissions: Iterable[ScoreSubmission]
) -> BatchResult:
    """
    Submit a judge's scores sequentially, continuing past individual failures.

    Args:
        client: Judging client
        judge: Caller identity of the judge
        hackathon_id: Hackathon id
        submissions: Encrypted scores to submit, in order

    Returns:
        BatchResult with one item per submission
    """
    result = BatchResult(hackathon_id=hackathon_id, judge=judge)

    for submission in submissions:
        result.total += 1
        try:
            receipt = await client.submit_score(
                judge,
                hackathon_id,
                project_id=submission.project_id,
                encrypted_score=submission.encrypted_score,
                proof=submission.proof,
            )
        except JudgingError as e:
            result.failed += 1
            result.items.append(BatchItemResult(
                project_id=submission.project_id,
                success=False,
                error=e.error,
                code=e.code,
                message=e.message,
            ))
            logger.warning(
                f"Batch item failed: judge {judge} project {submission.project_id} "
                f"in hackathon {hackathon_id}: {e.code}"
            )
            continue

        result.succeeded += 1
        result.items.append(BatchItemResult(
            project_id=submission.project_id,
            success=True,
            tx_hash=receipt.tx_hash,
        ))

    logger.info(
        f"Batch for judge {judge} in hackathon {hackathon_id}: "
        f"{result.succeeded}/{result.total} succeeded"
    )
    return result
