"""
Ledger: the serially ordered, durable commit point for every judging operation.

Exposes exactly two calls:
- submit_transaction(caller, op, args) -> Receipt   (returns after commit)
- query(view, args) -> value                       (latest committed state)

Each mutating operation runs in one database transaction. Either the
operation, its phase check and its hash-chained LedgerEntry all commit
together, or nothing does.

Rules:
- Hash = SHA256(previous_hash + sorted_json(event_data) + timestamp)
- The first entry links to "GENESIS"
- Entries are append-only (ORM guards reject updates and deletes)
"""
import hashlib
import json
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hackjudge.clock import Clock, to_naive_utc, utcnow
from hackjudge.crypto.combiner import Combiner, ProofVerifier
from hackjudge.database import Database
from hackjudge.errors import (
    AlreadyRegisteredError, DuplicateScoreError, JudgingError, LedgerSubmissionError
)
from hackjudge.orm.ledger_entry import LedgerEntry
from hackjudge.schemas.hackathon import (
    AggregateView, HackathonView, JudgeView, LedgerChainView, LifecycleView,
    ProjectView, Receipt, StandingsIntegrityView
)
from hackjudge.services.aggregation_service import AggregationService
from hackjudge.services.entity_store import EntityStore
from hackjudge.services.ranking_service import RankingService
from hackjudge.services.registration_service import RegistrationService
from hackjudge.services.scoring_service import ScoringService
from hackjudge.state_machines.hackathon_lifecycle import HackathonLifecycle, HackathonPhase

logger = logging.getLogger(__name__)

GENESIS_HASH = "GENESIS"


class LedgerOp(str, Enum):
    CREATE_HACKATHON = "create_hackathon"
    REGISTER_JUDGE = "register_judge"
    REGISTER_PROJECT = "register_project"
    SUBMIT_SCORE = "submit_score"
    AGGREGATE_SCORES = "aggregate_scores"
    PUBLISH_RANKINGS = "publish_rankings"


class LedgerView(str, Enum):
    HACKATHON_COUNT = "hackathon_count"
    HACKATHON = "hackathon"
    HACKATHONS = "hackathons"
    PROJECT = "project"
    PROJECTS = "projects"
    JUDGE = "judge"
    JUDGES = "judges"
    JUDGE_ADDRESSES = "judge_addresses"
    SCORES_READY = "scores_ready"
    JUDGE_COMPLETE = "judge_complete"
    PROJECT_RANKINGS = "project_rankings"
    AGGREGATE = "aggregate"
    LIFECYCLE = "lifecycle"
    STANDINGS_INTEGRITY = "standings_integrity"
    LEDGER_CHAIN = "ledger_chain"


# Operations whose uniqueness conflicts can surface as database integrity errors
UNIQUENESS_ERRORS = {
    LedgerOp.REGISTER_JUDGE: AlreadyRegisteredError,
    LedgerOp.SUBMIT_SCORE: DuplicateScoreError,
}

LIFECYCLE_OPERATIONS = [
    "register_judge",
    "register_project",
    "submit_score",
    "aggregate_scores",
    "publish_rankings",
]


# =============================================================================
# Hash Chain Functions
# =============================================================================

def compute_ledger_hash(previous_hash: str, event_data: Dict[str, Any], timestamp: str) -> str:
    """
    Compute the cryptographic hash for a ledger entry.

    Args:
        previous_hash: Hash of the previous entry (or "GENESIS")
        event_data: Event data dictionary
        timestamp: ISO format timestamp string

    Returns:
        SHA256 hex digest (64 characters)
    """
    event_json = json.dumps(event_data, sort_keys=True, separators=(',', ':'))
    data_to_hash = f"{previous_hash}{event_json}{timestamp}"
    return hashlib.sha256(data_to_hash.encode('utf-8')).hexdigest()


def canonical_value(value: Any) -> Any:
    """JSON-safe form of a transaction argument: bytes as hex, datetimes as ISO."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): canonical_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [canonical_value(v) for v in value]
    return value


def _event_data(entry_sequence: int, op: str, caller: str, hackathon_id: Optional[int], args_json: str) -> Dict[str, Any]:
    return {
        "sequence": entry_sequence,
        "op": op,
        "caller": caller,
        "hackathon_id": hackathon_id,
        "args": json.loads(args_json),
    }


class Ledger:
    """
    Transactional front door to the entity store.

    Args:
        database: Initialised Database
        combiner: Homomorphic combine operator for aggregation
        verifier: Proof verifier for score submission
        clock: Source of "now" (naive UTC); injectable for tests
    """

    def __init__(
        self,
        database: Database,
        combiner: Combiner,
        verifier: ProofVerifier,
        clock: Clock = utcnow
    ):
        self.database = database
        self.combiner = combiner
        self.verifier = verifier
        self._clock = clock

    def now(self) -> datetime:
        return to_naive_utc(self._clock())

    # ==========================================================================
    # Transactions
    # ==========================================================================

    async def submit_transaction(self, caller: str, op: str, args: Dict[str, Any]) -> Receipt:
        """
        Apply one operation atomically and return its receipt once committed.

        Raises:
            JudgingError: The operation was rejected; nothing was written
            LedgerSubmissionError: The store failed to commit
        """
        op = LedgerOp(op)
        now = self.now()

        try:
            async with self.database.transaction() as db:
                hackathon_id = args.get("hackathon_id")
                before = None
                if op != LedgerOp.CREATE_HACKATHON:
                    before = await self._phase(db, hackathon_id, now)

                result, hackathon_id = await self._apply(db, caller, op, args, now)

                if before is not None:
                    after = await self._phase(db, hackathon_id, now)
                    HackathonLifecycle.check_transition(hackathon_id, before, after)

                entry = await self._append_entry(db, op, caller, hackathon_id, args, result, now)
        except JudgingError as e:
            logger.warning(f"Rejected {op.value} from {caller}: {e.code} - {e.message}")
            raise
        except IntegrityError as e:
            raise self._classify_integrity_error(op, caller, args, e) from e
        except SQLAlchemyError as e:
            logger.error(f"Ledger commit failed for {op.value} from {caller}: {type(e).__name__}: {e}")
            raise LedgerSubmissionError(
                f"Ledger could not commit {op.value}",
                details={"op": op.value, "reason": type(e).__name__}
            ) from e

        logger.info(f"Committed #{entry.sequence} {op.value} by {caller} ({entry.event_hash[:12]})")

        return Receipt(
            sequence=entry.sequence,
            tx_hash=entry.event_hash,
            op=op.value,
            caller=caller,
            hackathon_id=hackathon_id,
            result=result,
            committed_at=entry.committed_at,
        )

    def _classify_integrity_error(self, op: LedgerOp, caller: str, args: Dict[str, Any], error: IntegrityError) -> JudgingError:
        """A concurrent writer committed first; surface the loser's outcome."""
        message = str(error.orig) if error.orig is not None else str(error)
        if "ledger_entries" not in message and op in UNIQUENESS_ERRORS:
            logger.warning(f"Concurrent {op.value} by {caller} lost to an earlier commit")
            return UNIQUENESS_ERRORS[op](
                f"A conflicting {op.value} was committed first",
                details=canonical_value({k: v for k, v in args.items() if k != "proof"})
            )
        logger.warning(f"Ordering conflict while committing {op.value} from {caller}: {message}")
        return LedgerSubmissionError(
            f"Ledger ordering conflict while committing {op.value}; resubmit",
            details={"op": op.value}
        )

    async def _phase(self, db: AsyncSession, hackathon_id: int, now: datetime) -> HackathonPhase:
        hackathon = await EntityStore.get_hackathon(db, hackathon_id)
        ready = await AggregationService.is_ready(db, hackathon)
        return HackathonLifecycle.derive_phase(hackathon, now, ready)

    async def _apply(
        self,
        db: AsyncSession,
        caller: str,
        op: LedgerOp,
        args: Dict[str, Any],
        now: datetime
    ) -> Tuple[Dict[str, Any], Optional[int]]:
        if op == LedgerOp.CREATE_HACKATHON:
            hackathon = await RegistrationService.create_hackathon(
                db, caller,
                name=args["name"],
                description=args.get("description", ""),
                start_time=to_naive_utc(args["start_time"]),
                end_time=to_naive_utc(args["end_time"]),
            )
            return {"hackathon_id": hackathon.id}, hackathon.id

        hackathon_id = args["hackathon_id"]

        if op == LedgerOp.REGISTER_JUDGE:
            judge = await RegistrationService.register_judge(db, caller, hackathon_id, args["address"])
            return {"address": judge.address, "judge_count": judge.registration_index + 1}, hackathon_id

        if op == LedgerOp.REGISTER_PROJECT:
            project = await RegistrationService.register_project(
                db, caller, hackathon_id,
                name=args["name"],
                description=args.get("description", ""),
                github_url=args.get("github_url", ""),
                demo_url=args.get("demo_url", ""),
                now=now,
            )
            return {"project_id": project.id}, hackathon_id

        if op == LedgerOp.SUBMIT_SCORE:
            judge = await ScoringService.submit_score(
                db, self.verifier, caller, hackathon_id,
                project_id=args["project_id"],
                encrypted_score=args["encrypted_score"],
                proof=args["proof"],
            )
            hackathon = await EntityStore.get_hackathon(db, hackathon_id)
            return {
                "project_id": args["project_id"],
                "projects_scored": judge.projects_scored,
                "has_submitted_all_scores": judge.has_submitted_all_scores(hackathon.project_count),
            }, hackathon_id

        if op == LedgerOp.AGGREGATE_SCORES:
            aggregate, created = await AggregationService.aggregate_scores(
                db, self.combiner, caller, hackathon_id, args["project_id"]
            )
            hackathon = await EntityStore.get_hackathon(db, hackathon_id)
            return {
                "project_id": aggregate.project_id,
                "created": created,
                "score_count": aggregate.score_count,
                "scores_aggregated": bool(hackathon.scores_aggregated),
            }, hackathon_id

        if op == LedgerOp.PUBLISH_RANKINGS:
            hackathon = await RankingService.publish_rankings(
                db, caller, hackathon_id, list(args["project_ids"])
            )
            return {"final_standings_hash": hackathon.final_standings_hash}, hackathon_id

        raise ValueError(f"Unsupported ledger operation: {op}")

    async def _append_entry(
        self,
        db: AsyncSession,
        op: LedgerOp,
        caller: str,
        hackathon_id: Optional[int],
        args: Dict[str, Any],
        result: Dict[str, Any],
        now: datetime
    ) -> LedgerEntry:
        previous = await db.execute(
            select(LedgerEntry).order_by(LedgerEntry.sequence.desc()).limit(1)
        )
        last = previous.scalar_one_or_none()
        sequence = last.sequence + 1 if last else 1
        previous_hash = last.event_hash if last else GENESIS_HASH

        args_json = json.dumps(canonical_value(args), sort_keys=True, separators=(',', ':'))
        event_hash = compute_ledger_hash(
            previous_hash,
            _event_data(sequence, op.value, caller, hackathon_id, args_json),
            now.isoformat()
        )

        entry = LedgerEntry(
            sequence=sequence,
            op=op.value,
            caller=caller,
            hackathon_id=hackathon_id,
            args_json=args_json,
            result_json=json.dumps(canonical_value(result), sort_keys=True),
            event_hash=event_hash,
            previous_hash=previous_hash,
            committed_at=now,
        )
        db.add(entry)
        await db.flush()

        logger.debug(f"Appended ledger entry {sequence} ({op.value}) previous={previous_hash[:12]}")
        return entry

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def query(self, view: str, args: Optional[Dict[str, Any]] = None) -> Any:
        """Read the latest committed state. Never blocks on pending writes."""
        view = LedgerView(view)
        args = args or {}
        now = self.now()

        async with self.database.reader() as db:
            if view == LedgerView.HACKATHON_COUNT:
                return await EntityStore.hackathon_count(db)

            if view == LedgerView.HACKATHONS:
                hackathons = await EntityStore.list_hackathons(
                    db, offset=args.get("offset", 0), limit=args.get("limit")
                )
                return [HackathonView(**h.to_dict(now)) for h in hackathons]

            if view == LedgerView.LEDGER_CHAIN:
                return await self._verify_chain(db)

            hackathon = await EntityStore.get_hackathon(db, args["hackathon_id"])

            if view == LedgerView.HACKATHON:
                return HackathonView(**hackathon.to_dict(now))

            if view == LedgerView.PROJECT:
                project = await EntityStore.get_project(db, hackathon.id, args["project_id"])
                return ProjectView.model_validate(project)

            if view == LedgerView.PROJECTS:
                projects = await EntityStore.list_projects(db, hackathon.id)
                return [ProjectView.model_validate(p) for p in projects]

            if view == LedgerView.JUDGE:
                return await self._judge_view(db, hackathon, args["address"])

            if view == LedgerView.JUDGES:
                judges = await EntityStore.list_judges(db, hackathon.id)
                return [JudgeView(**j.to_dict(hackathon.project_count)) for j in judges]

            if view == LedgerView.JUDGE_ADDRESSES:
                return await EntityStore.judge_addresses(db, hackathon.id)

            if view == LedgerView.SCORES_READY:
                return await AggregationService.is_ready(db, hackathon)

            if view == LedgerView.JUDGE_COMPLETE:
                judge_view = await self._judge_view(db, hackathon, args["address"])
                return judge_view.has_submitted_all_scores

            if view == LedgerView.PROJECT_RANKINGS:
                return await EntityStore.project_rankings(db, hackathon.id)

            if view == LedgerView.AGGREGATE:
                return await self._aggregate_view(db, hackathon.id, args["project_id"])

            if view == LedgerView.LIFECYCLE:
                ready = await AggregationService.is_ready(db, hackathon)
                phase = HackathonLifecycle.derive_phase(hackathon, now, ready)
                allowed = [
                    operation for operation in LIFECYCLE_OPERATIONS
                    if HackathonLifecycle.check_operation_allowed(phase, operation)[0]
                ]
                return LifecycleView(
                    hackathon_id=hackathon.id,
                    phase=phase.value,
                    scores_ready=ready,
                    allowed_operations=allowed,
                )

            if view == LedgerView.STANDINGS_INTEGRITY:
                is_valid, computed = await RankingService.verify_standings_integrity(db, hackathon.id)
                return StandingsIntegrityView(
                    hackathon_id=hackathon.id,
                    is_valid=is_valid,
                    stored_hash=hackathon.final_standings_hash,
                    computed_hash=computed or None,
                )

        raise ValueError(f"Unsupported ledger view: {view}")

    @staticmethod
    async def _judge_view(db: AsyncSession, hackathon, address: str) -> JudgeView:
        judge = await EntityStore.find_judge(db, hackathon.id, address)
        if judge is None:
            # Unknown addresses read as an unregistered, incomplete judge
            return JudgeView(
                hackathon_id=hackathon.id,
                address=address,
                is_registered=False,
                projects_scored=0,
                has_submitted_all_scores=False,
            )
        return JudgeView(**judge.to_dict(hackathon.project_count))

    @staticmethod
    async def _aggregate_view(db: AsyncSession, hackathon_id: int, project_id: int) -> Optional[AggregateView]:
        await EntityStore.get_project(db, hackathon_id, project_id)
        aggregate = await EntityStore.find_aggregate(db, hackathon_id, project_id)
        if aggregate is None:
            return None
        return AggregateView(**aggregate.to_dict())

    @staticmethod
    async def _verify_chain(db: AsyncSession) -> LedgerChainView:
        """
        Verify the integrity of the ledger chain.

        Checks:
        1. Every entry's hash matches the recomputed hash
        2. Every entry's previous_hash matches the previous entry's event_hash
        3. The first entry links to GENESIS
        """
        result = await db.execute(select(LedgerEntry).order_by(LedgerEntry.sequence.asc()))
        entries = list(result.scalars().all())

        if not entries:
            return LedgerChainView(is_valid=True, total_entries=0)

        errors = []
        for i, entry in enumerate(entries):
            expected_previous = GENESIS_HASH if i == 0 else entries[i - 1].event_hash
            if entry.previous_hash != expected_previous:
                errors.append(
                    f"Entry {entry.sequence}: previous_hash '{entry.previous_hash}' "
                    f"does not match '{expected_previous}'"
                )

            computed_hash = compute_ledger_hash(
                entry.previous_hash,
                _event_data(entry.sequence, entry.op, entry.caller, entry.hackathon_id, entry.args_json),
                entry.committed_at.isoformat()
            )
            if computed_hash != entry.event_hash:
                errors.append(
                    f"Entry {entry.sequence}: hash mismatch, stored '{entry.event_hash}', "
                    f"computed '{computed_hash}'"
                )

        return LedgerChainView(
            is_valid=not errors,
            total_entries=len(entries),
            first_sequence=entries[0].sequence,
            last_sequence=entries[-1].sequence,
            errors=errors,
        )
