"""
hackjudge/schemas/hackathon.py
Pydantic models for the public read surface, write requests and receipts.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ================= VIEWS =================

class HackathonView(BaseModel):
    """Public hackathon detail. is_active is computed at read time."""
    id: int
    name: str
    description: str
    start_time: datetime
    end_time: datetime
    organizer: str
    is_active: bool
    scores_aggregated: bool
    rankings_published: bool
    project_count: int
    judge_count: int
    aggregated_project_count: int
    final_standings_hash: Optional[str] = None


class ProjectView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    hackathon_id: int
    id: int
    name: str
    description: str
    github_url: str
    demo_url: str
    team_lead: str
    is_registered: bool
    public_rank: int


class JudgeView(BaseModel):
    hackathon_id: int
    address: str
    is_registered: bool
    projects_scored: int
    has_submitted_all_scores: bool


class AggregateView(BaseModel):
    """Combined encrypted score for a project, hex encoded."""
    hackathon_id: int
    project_id: int
    payload: str
    score_count: int
    aggregated_by: str
    aggregated_at: Optional[datetime] = None


class LifecycleView(BaseModel):
    hackathon_id: int
    phase: str
    scores_ready: bool
    allowed_operations: List[str]


class StandingsIntegrityView(BaseModel):
    hackathon_id: int
    is_valid: bool
    stored_hash: Optional[str] = None
    computed_hash: Optional[str] = None


class LedgerChainView(BaseModel):
    is_valid: bool
    total_entries: int
    first_sequence: Optional[int] = None
    last_sequence: Optional[int] = None
    errors: List[str] = Field(default_factory=list)


class Receipt(BaseModel):
    """Confirmation of a committed ledger transaction."""
    sequence: int
    tx_hash: str
    op: str
    caller: str
    hackathon_id: Optional[int] = None
    result: Dict[str, Any] = Field(default_factory=dict)
    committed_at: datetime


# ================= REQUESTS =================

class CreateHackathonRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=10000)
    start_time: datetime
    end_time: datetime


class RegisterJudgeRequest(BaseModel):
    address: str = Field(..., min_length=1, max_length=128)


class RegisterProjectRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=10000)
    github_url: str = Field(default="", max_length=512)
    demo_url: str = Field(default="", max_length=512)


class SubmitScoreRequest(BaseModel):
    """Encrypted score and proof as hex strings (an optional 0x prefix is accepted)."""
    project_id: int = Field(..., ge=0)
    encrypted_score: str = Field(..., min_length=2)
    proof: str = Field(..., min_length=2)

    @field_validator("encrypted_score", "proof")
    @classmethod
    def must_be_hex(cls, value: str) -> str:
        raw = value[2:] if value.lower().startswith("0x") else value
        try:
            bytes.fromhex(raw)
        except ValueError:
            raise ValueError("must be a hex encoded byte string")
        return raw

    def payload_bytes(self) -> bytes:
        return bytes.fromhex(self.encrypted_score)

    def proof_bytes(self) -> bytes:
        return bytes.fromhex(self.proof)


class AggregateScoresRequest(BaseModel):
    project_id: int = Field(..., ge=0)


class PublishRankingsRequest(BaseModel):
    project_ids: List[int]

    @model_validator(mode='after')
    def require_projects(self):
        if not self.project_ids:
            raise ValueError("project_ids must not be empty")
        return self
