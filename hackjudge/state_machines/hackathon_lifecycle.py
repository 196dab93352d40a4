"""
Hackathon Lifecycle State Machine.

The phase of a hackathon is never stored. It is derived from the window,
the readiness predicate and the two terminal-progress flags, so it can never
drift from the data it summarises.

State Flow:
    created -> registration_open -> all_scores_submitted -> aggregating
            -> aggregated -> published (terminal)

A hackathon whose window closes before every judge has finished sits in
registration_closed until the last score arrives. Registering a judge or a
project can move a ready hackathon back out of all_scores_submitted.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Dict, List, Tuple

from hackjudge.errors import (
    AlreadyAggregatedError, AlreadyPublishedError, NotActiveError,
    NotAggregatedError, NotReadyError
)
from hackjudge.orm.hackathon import Hackathon

logger = logging.getLogger(__name__)


class HackathonPhase(str, Enum):
    """Derived lifecycle phase of a hackathon."""
    CREATED = "created"
    REGISTRATION_OPEN = "registration_open"
    REGISTRATION_CLOSED = "registration_closed"
    ALL_SCORES_SUBMITTED = "all_scores_submitted"
    AGGREGATING = "aggregating"
    AGGREGATED = "aggregated"
    PUBLISHED = "published"


class InvalidTransitionError(Exception):
    """Raised when an operation would move a hackathon along an illegal edge."""
    pass


class HackathonLifecycle:
    """
    Phase derivation and lifecycle gates for a hackathon.

    Every mutating operation calls the matching ensure_* gate before touching
    state; the ledger checks the resulting phase change against
    VALID_TRANSITIONS before committing.
    """

    VALID_TRANSITIONS: Dict[HackathonPhase, List[HackathonPhase]] = {
        HackathonPhase.CREATED: [
            HackathonPhase.REGISTRATION_OPEN,
            HackathonPhase.REGISTRATION_CLOSED,
        ],
        HackathonPhase.REGISTRATION_OPEN: [
            HackathonPhase.ALL_SCORES_SUBMITTED,
            HackathonPhase.REGISTRATION_CLOSED,
        ],
        HackathonPhase.REGISTRATION_CLOSED: [
            HackathonPhase.ALL_SCORES_SUBMITTED,
        ],
        HackathonPhase.ALL_SCORES_SUBMITTED: [
            # a new judge or project resets readiness
            HackathonPhase.REGISTRATION_OPEN,
            HackathonPhase.REGISTRATION_CLOSED,
            HackathonPhase.AGGREGATING,
            HackathonPhase.AGGREGATED,
        ],
        HackathonPhase.AGGREGATING: [HackathonPhase.AGGREGATED],
        HackathonPhase.AGGREGATED: [HackathonPhase.PUBLISHED],
        HackathonPhase.PUBLISHED: [],  # Terminal state
    }

    # Phases in which no judge, project or score can be added
    CLOSED_PHASES = [
        HackathonPhase.AGGREGATING,
        HackathonPhase.AGGREGATED,
        HackathonPhase.PUBLISHED,
    ]

    @staticmethod
    def _is_valid_transition(current: HackathonPhase, new: HackathonPhase) -> bool:
        """Check if phase transition is valid."""
        return new in HackathonLifecycle.VALID_TRANSITIONS.get(current, [])

    @staticmethod
    def derive_phase(hackathon: Hackathon, now: datetime, ready: bool) -> HackathonPhase:
        """
        Derive the phase of a hackathon.

        Args:
            hackathon: Hackathon record
            now: Current instant (naive UTC)
            ready: Result of the readiness predicate for this hackathon

        Returns:
            HackathonPhase
        """
        if hackathon.rankings_published:
            return HackathonPhase.PUBLISHED
        if hackathon.scores_aggregated:
            return HackathonPhase.AGGREGATED
        if hackathon.aggregated_project_count > 0:
            return HackathonPhase.AGGREGATING
        if ready:
            return HackathonPhase.ALL_SCORES_SUBMITTED
        if now < hackathon.start_time:
            return HackathonPhase.CREATED
        if hackathon.is_active(now):
            return HackathonPhase.REGISTRATION_OPEN
        return HackathonPhase.REGISTRATION_CLOSED

    @staticmethod
    def check_transition(hackathon_id: int, before: HackathonPhase, after: HackathonPhase) -> None:
        """Reject a phase change that is not an edge of the state machine."""
        if before == after:
            return
        if not HackathonLifecycle._is_valid_transition(before, after):
            raise InvalidTransitionError(
                f"Hackathon {hackathon_id} cannot move from {before.value} to {after.value}. "
                f"Allowed: {[p.value for p in HackathonLifecycle.VALID_TRANSITIONS.get(before, [])]}"
            )
        logger.info(f"Hackathon {hackathon_id} phase: {before.value} -> {after.value}")

    @staticmethod
    def check_operation_allowed(phase: HackathonPhase, operation: str) -> Tuple[bool, str]:
        """
        Check if an operation is allowed in a phase.

        Returns:
            Tuple of (allowed, reason)
        """
        if operation in ("register_judge", "register_project", "submit_score"):
            if phase in HackathonLifecycle.CLOSED_PHASES:
                return False, f"Hackathon is {phase.value}"

        if operation == "register_project":
            if phase in (HackathonPhase.CREATED, HackathonPhase.REGISTRATION_CLOSED):
                return False, "Registration window is not open"

        if operation == "aggregate_scores":
            # re-aggregating an already aggregated project returns the stored result
            if phase not in (
                HackathonPhase.ALL_SCORES_SUBMITTED,
                HackathonPhase.AGGREGATING,
                HackathonPhase.AGGREGATED,
                HackathonPhase.PUBLISHED,
            ):
                return False, "Not every judge has scored every project"

        if operation == "publish_rankings":
            if phase == HackathonPhase.PUBLISHED:
                return False, "Rankings already published"
            if phase != HackathonPhase.AGGREGATED:
                return False, "Scores have not been aggregated"

        return True, ""

    # ==========================================================================
    # Gates
    # ==========================================================================

    @staticmethod
    def ensure_can_register_judge(hackathon: Hackathon) -> None:
        if hackathon.aggregation_started:
            raise AlreadyAggregatedError(
                f"Hackathon {hackathon.id} has begun aggregation; judges can no longer be added",
                details={"hackathon_id": hackathon.id}
            )

    @staticmethod
    def ensure_can_register_project(hackathon: Hackathon, now: datetime) -> None:
        if hackathon.aggregation_started:
            raise NotActiveError(
                f"Registration for hackathon {hackathon.id} closed when aggregation began",
                details={"hackathon_id": hackathon.id}
            )
        if not hackathon.is_active(now):
            raise NotActiveError(
                f"Hackathon {hackathon.id} is not accepting projects outside "
                f"{hackathon.start_time.isoformat()} .. {hackathon.end_time.isoformat()}",
                details={
                    "hackathon_id": hackathon.id,
                    "start_time": hackathon.start_time.isoformat(),
                    "end_time": hackathon.end_time.isoformat(),
                    "now": now.isoformat(),
                }
            )

    @staticmethod
    def ensure_can_score(hackathon: Hackathon) -> None:
        if hackathon.aggregation_started:
            raise AlreadyAggregatedError(
                f"Scores for hackathon {hackathon.id} have been aggregated",
                details={"hackathon_id": hackathon.id}
            )

    @staticmethod
    def ensure_can_aggregate(hackathon: Hackathon, ready: bool) -> None:
        if not ready:
            raise NotReadyError(
                f"Hackathon {hackathon.id} is not ready for aggregation",
                details={
                    "hackathon_id": hackathon.id,
                    "judge_count": hackathon.judge_count,
                    "project_count": hackathon.project_count,
                }
            )

    @staticmethod
    def ensure_can_publish(hackathon: Hackathon) -> None:
        if hackathon.rankings_published:
            raise AlreadyPublishedError(
                f"Rankings for hackathon {hackathon.id} are already published",
                details={"hackathon_id": hackathon.id}
            )
        if not hackathon.scores_aggregated:
            raise NotAggregatedError(
                f"Scores for hackathon {hackathon.id} have not been aggregated",
                details={
                    "hackathon_id": hackathon.id,
                    "aggregated_project_count": hackathon.aggregated_project_count,
                    "project_count": hackathon.project_count,
                }
            )
