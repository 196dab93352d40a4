from .hackathon import (
    AggregateScoresRequest,
    AggregateView,
    CreateHackathonRequest,
    HackathonView,
    JudgeView,
    LedgerChainView,
    LifecycleView,
    ProjectView,
    PublishRankingsRequest,
    Receipt,
    RegisterJudgeRequest,
    RegisterProjectRequest,
    StandingsIntegrityView,
    SubmitScoreRequest,
)

__all__ = [
    "AggregateScoresRequest",
    "AggregateView",
    "CreateHackathonRequest",
    "HackathonView",
    "JudgeView",
    "LedgerChainView",
    "LifecycleView",
    "ProjectView",
    "PublishRankingsRequest",
    "Receipt",
    "RegisterJudgeRequest",
    "RegisterProjectRequest",
    "StandingsIntegrityView",
    "SubmitScoreRequest",
]
