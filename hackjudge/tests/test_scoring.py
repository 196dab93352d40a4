"""
Score submission tests.
"""
import pytest

from conftest import ORGANIZER
from hackjudge.errors import (
    AlreadyAggregatedError, DuplicateScoreError, InvalidProofError,
    NotJudgeError, UnknownHackathonError, UnknownProjectError
)


class TestSubmitScore:

    @pytest.mark.asyncio
    async def test_projects_scored_increments(self, client, builder):
        hackathon_id = await builder.create()
        judges = await builder.add_judges(hackathon_id, 1)
        await builder.add_projects(hackathon_id, 2)

        receipt = await builder.score(judges[0], hackathon_id, 1, 8)
        assert receipt.result["projects_scored"] == 1
        assert receipt.result["has_submitted_all_scores"] is False

        await builder.score(judges[0], hackathon_id, 0, 3)
        judge = await client.get_judge(hackathon_id, judges[0])
        assert judge.projects_scored == 2
        assert judge.has_submitted_all_scores is True

    @pytest.mark.asyncio
    async def test_non_judge_rejected(self, client, builder):
        hackathon_id = await builder.create()
        await builder.add_projects(hackathon_id, 1)
        with pytest.raises(NotJudgeError):
            await builder.score(ORGANIZER, hackathon_id, 0, 5)

    @pytest.mark.asyncio
    async def test_unknown_project_rejected(self, client, builder):
        hackathon_id = await builder.create()
        judges = await builder.add_judges(hackathon_id, 1)
        await builder.add_projects(hackathon_id, 2)
        for project_id in (2, -1):
            with pytest.raises(UnknownProjectError):
                await builder.score(judges[0], hackathon_id, project_id, 5)
        assert (await client.get_judge(hackathon_id, judges[0])).projects_scored == 0

    @pytest.mark.asyncio
    async def test_duplicate_rejected_and_counter_unchanged(self, client, builder):
        hackathon_id = await builder.create()
        judges = await builder.add_judges(hackathon_id, 1)
        await builder.add_projects(hackathon_id, 2)

        await builder.score(judges[0], hackathon_id, 0, 5)
        with pytest.raises(DuplicateScoreError):
            await builder.score(judges[0], hackathon_id, 0, 9)
        assert (await client.get_judge(hackathon_id, judges[0])).projects_scored == 1

    @pytest.mark.asyncio
    async def test_invalid_proof_rejected(self, client, builder, cipher):
        hackathon_id = await builder.create()
        judges = await builder.add_judges(hackathon_id, 1)
        await builder.add_projects(hackathon_id, 1)

        payload, _ = cipher.encode(5)
        _, other_proof = cipher.encode(6)
        with pytest.raises(InvalidProofError):
            await client.submit_score(judges[0], hackathon_id, 0, payload, other_proof)
        assert (await client.get_judge(hackathon_id, judges[0])).projects_scored == 0

    @pytest.mark.asyncio
    async def test_two_judges_same_project(self, client, builder):
        hackathon_id = await builder.create()
        judges = await builder.add_judges(hackathon_id, 2)
        await builder.add_projects(hackathon_id, 1)
        await builder.score(judges[0], hackathon_id, 0, 5)
        await builder.score(judges[1], hackathon_id, 0, 7)
        assert await client.are_scores_ready_for_aggregation(hackathon_id) is True

    @pytest.mark.asyncio
    async def test_scores_not_exposed_individually(self, client, builder):
        hackathon_id = await builder.create()
        judges = await builder.add_judges(hackathon_id, 1)
        await builder.add_projects(hackathon_id, 1)
        await builder.score(judges[0], hackathon_id, 0, 5)

        judge = await client.get_judge(hackathon_id, judges[0])
        project = await client.get_project(hackathon_id, 0)
        assert "payload" not in judge.model_dump()
        assert "payload" not in project.model_dump()
        assert await client.get_aggregate(hackathon_id, 0) is None

    @pytest.mark.asyncio
    async def test_scoring_closed_once_aggregation_begins(self, client, builder):
        hackathon_id = await builder.create()
        judges = await builder.add_judges(hackathon_id, 1)
        await builder.add_projects(hackathon_id, 2)
        await builder.score_all(hackathon_id, judges, [0, 1])
        await client.aggregate_scores(ORGANIZER, hackathon_id, 0)

        with pytest.raises(AlreadyAggregatedError):
            await builder.score(judges[0], hackathon_id, 1, 5)

    @pytest.mark.asyncio
    async def test_unknown_hackathon(self, builder):
        with pytest.raises(UnknownHackathonError):
            await builder.score("0xjudge0", 3, 0, 5)


class TestCompleteness:

    @pytest.mark.asyncio
    async def test_late_project_reopens_completeness(self, client, builder):
        hackathon_id = await builder.create()
        judges = await builder.add_judges(hackathon_id, 1)
        await builder.add_projects(hackathon_id, 1)
        await builder.score(judges[0], hackathon_id, 0, 5)
        assert await client.has_judge_submitted_all_scores(hackathon_id, judges[0]) is True

        await builder.add_projects(hackathon_id, 1)
        assert await client.has_judge_submitted_all_scores(hackathon_id, judges[0]) is False
        assert await client.are_scores_ready_for_aggregation(hackathon_id) is False

    @pytest.mark.asyncio
    async def test_late_judge_blocks_readiness(self, client, builder):
        hackathon_id = await builder.ready(judges=1, projects=2)
        assert await client.are_scores_ready_for_aggregation(hackathon_id) is True

        await client.register_judge(ORGANIZER, hackathon_id, "0xlate")
        assert await client.are_scores_ready_for_aggregation(hackathon_id) is False
