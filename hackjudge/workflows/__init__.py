from hackjudge.workflows.batch_scoring import (
    BatchItemResult, BatchResult, ScoreSubmission, submit_scores_batch
)
from hackjudge.workflows.complete_workflow import WorkflowResult, rank_by_total, run_complete_workflow

__all__ = [
    "BatchItemResult",
    "BatchResult",
    "ScoreSubmission",
    "submit_scores_batch",
    "WorkflowResult",
    "rank_by_total",
    "run_complete_workflow",
]
