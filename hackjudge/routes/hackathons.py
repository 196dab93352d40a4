"""
Hackathon judging API routes.

Every write is one ledger transaction and answers with its Receipt; every
read is one ledger query. The caller identity comes from the
X-Caller-Address header and is passed through untouched.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, status

from hackjudge.client import JudgingClient
from hackjudge.schemas.hackathon import (
    AggregateScoresRequest, AggregateView, CreateHackathonRequest, HackathonView,
    JudgeView, LifecycleView, ProjectView, PublishRankingsRequest, Receipt,
    RegisterJudgeRequest, RegisterProjectRequest, StandingsIntegrityView,
    SubmitScoreRequest
)

router = APIRouter(prefix="/hackathons", tags=["hackathons"])


def get_client(request: Request) -> JudgingClient:
    return request.app.state.client


def get_caller(caller: str = Header(..., alias="X-Caller-Address", min_length=1)) -> str:
    return caller


# =============================================================================
# Hackathons
# =============================================================================

@router.post("", response_model=Receipt, status_code=status.HTTP_201_CREATED)
async def create_hackathon(
    request: CreateHackathonRequest,
    caller: str = Depends(get_caller),
    client: JudgingClient = Depends(get_client)
):
    """
    Create a hackathon. The caller becomes its organizer.

    The new hackathon id is returned in `result.hackathon_id`.
    """
    return await client.create_hackathon(
        caller,
        name=request.name,
        description=request.description,
        start_time=request.start_time,
        end_time=request.end_time,
    )


@router.get("", response_model=List[HackathonView])
async def list_hackathons(
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=500),
    client: JudgingClient = Depends(get_client)
):
    return await client.list_hackathons(offset=offset, limit=limit)


@router.get("/count")
async def get_hackathon_count(client: JudgingClient = Depends(get_client)):
    return {"count": await client.get_hackathon_count()}


@router.get("/{hackathon_id}", response_model=HackathonView)
async def get_hackathon(hackathon_id: int, client: JudgingClient = Depends(get_client)):
    return await client.get_hackathon(hackathon_id)


@router.get("/{hackathon_id}/lifecycle", response_model=LifecycleView)
async def get_lifecycle(hackathon_id: int, client: JudgingClient = Depends(get_client)):
    """Derived phase and the operations it currently permits."""
    return await client.get_lifecycle(hackathon_id)


@router.get("/{hackathon_id}/ready")
async def are_scores_ready(hackathon_id: int, client: JudgingClient = Depends(get_client)):
    return {
        "hackathon_id": hackathon_id,
        "ready": await client.are_scores_ready_for_aggregation(hackathon_id),
    }


# =============================================================================
# Judges
# =============================================================================

@router.post("/{hackathon_id}/judges", response_model=Receipt, status_code=status.HTTP_201_CREATED)
async def register_judge(
    hackathon_id: int,
    request: RegisterJudgeRequest,
    caller: str = Depends(get_caller),
    client: JudgingClient = Depends(get_client)
):
    """
    Appoint a judge.

    **Caller:** organizer
    """
    return await client.register_judge(caller, hackathon_id, request.address)


@router.get("/{hackathon_id}/judges", response_model=List[JudgeView])
async def list_judges(hackathon_id: int, client: JudgingClient = Depends(get_client)):
    return await client.list_judges(hackathon_id)


@router.get("/{hackathon_id}/judges/addresses", response_model=List[str])
async def get_judge_addresses(hackathon_id: int, client: JudgingClient = Depends(get_client)):
    """Judge addresses in registration order."""
    return await client.get_judge_addresses(hackathon_id)


@router.get("/{hackathon_id}/judges/{address}", response_model=JudgeView)
async def get_judge(hackathon_id: int, address: str, client: JudgingClient = Depends(get_client)):
    return await client.get_judge(hackathon_id, address)


@router.get("/{hackathon_id}/judges/{address}/complete")
async def has_judge_submitted_all_scores(
    hackathon_id: int,
    address: str,
    client: JudgingClient = Depends(get_client)
):
    return {
        "hackathon_id": hackathon_id,
        "address": address,
        "complete": await client.has_judge_submitted_all_scores(hackathon_id, address),
    }


# =============================================================================
# Projects
# =============================================================================

@router.post("/{hackathon_id}/projects", response_model=Receipt, status_code=status.HTTP_201_CREATED)
async def register_project(
    hackathon_id: int,
    request: RegisterProjectRequest,
    caller: str = Depends(get_caller),
    client: JudgingClient = Depends(get_client)
):
    """
    Register a project. The caller becomes its team lead.

    Only accepted while the hackathon window is open.
    """
    return await client.register_project(
        caller,
        hackathon_id,
        name=request.name,
        description=request.description,
        github_url=request.github_url,
        demo_url=request.demo_url,
    )


@router.get("/{hackathon_id}/projects", response_model=List[ProjectView])
async def list_projects(hackathon_id: int, client: JudgingClient = Depends(get_client)):
    return await client.list_projects(hackathon_id)


@router.get("/{hackathon_id}/projects/{project_id}", response_model=ProjectView)
async def get_project(hackathon_id: int, project_id: int, client: JudgingClient = Depends(get_client)):
    return await client.get_project(hackathon_id, project_id)


@router.get("/{hackathon_id}/projects/{project_id}/aggregate", response_model=Optional[AggregateView])
async def get_aggregate(hackathon_id: int, project_id: int, client: JudgingClient = Depends(get_client)):
    """Encrypted aggregate for a project, or null before it is aggregated."""
    return await client.get_aggregate(hackathon_id, project_id)


# =============================================================================
# Scoring, aggregation and rankings
# =============================================================================

@router.post("/{hackathon_id}/scores", response_model=Receipt, status_code=status.HTTP_201_CREATED)
async def submit_score(
    hackathon_id: int,
    request: SubmitScoreRequest,
    caller: str = Depends(get_caller),
    client: JudgingClient = Depends(get_client)
):
    """
    Submit an encrypted score for one project.

    **Caller:** registered judge

    Payload and proof are hex encoded. Each (judge, project) pair may be
    scored once.
    """
    return await client.submit_score(
        caller,
        hackathon_id,
        project_id=request.project_id,
        encrypted_score=request.payload_bytes(),
        proof=request.proof_bytes(),
    )


@router.post("/{hackathon_id}/aggregates", response_model=Receipt)
async def aggregate_scores(
    hackathon_id: int,
    request: AggregateScoresRequest,
    caller: str = Depends(get_caller),
    client: JudgingClient = Depends(get_client)
):
    """
    Aggregate all scores for one project.

    **Caller:** organizer

    Repeating the call for an aggregated project returns `result.created = false`.
    """
    return await client.aggregate_scores(caller, hackathon_id, request.project_id)


@router.post("/{hackathon_id}/rankings", response_model=Receipt)
async def publish_rankings(
    hackathon_id: int,
    request: PublishRankingsRequest,
    caller: str = Depends(get_caller),
    client: JudgingClient = Depends(get_client)
):
    """
    Publish final rankings, first place first.

    **Caller:** organizer

    Irreversible. `project_ids` must list every project exactly once.
    """
    return await client.publish_rankings(caller, hackathon_id, request.project_ids)


@router.get("/{hackathon_id}/rankings", response_model=List[int])
async def get_project_rankings(hackathon_id: int, client: JudgingClient = Depends(get_client)):
    return await client.get_project_rankings(hackathon_id)


@router.get("/{hackathon_id}/standings/verify", response_model=StandingsIntegrityView)
async def verify_standings(hackathon_id: int, client: JudgingClient = Depends(get_client)):
    """Recompute the published standings hash and compare it with the stored one."""
    return await client.verify_standings(hackathon_id)
