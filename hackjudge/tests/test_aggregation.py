"""
Aggregation engine tests.
"""
from datetime import timedelta

import pytest

from conftest import ORGANIZER, T0, WINDOW
from hackjudge.errors import NotOrganizerError, NotReadyError, UnknownProjectError


class TestReadiness:

    @pytest.mark.asyncio
    async def test_empty_hackathon_not_ready(self, client, builder):
        hackathon_id = await builder.create()
        assert await client.are_scores_ready_for_aggregation(hackathon_id) is False

    @pytest.mark.asyncio
    async def test_judges_without_projects_not_ready(self, client, builder):
        hackathon_id = await builder.create()
        await builder.add_judges(hackathon_id, 2)
        assert await client.are_scores_ready_for_aggregation(hackathon_id) is False

    @pytest.mark.asyncio
    async def test_projects_without_judges_not_ready(self, client, builder):
        hackathon_id = await builder.create()
        await builder.add_projects(hackathon_id, 2)
        assert await client.are_scores_ready_for_aggregation(hackathon_id) is False

    @pytest.mark.asyncio
    async def test_readiness_survives_window_close(self, client, builder, clock):
        hackathon_id = await builder.ready()
        clock.set(T0 + WINDOW + timedelta(days=1))
        assert await client.are_scores_ready_for_aggregation(hackathon_id) is True
        await client.aggregate_scores(ORGANIZER, hackathon_id, 0)


class TestAggregateScores:

    @pytest.mark.asyncio
    async def test_not_ready_rejected(self, client, builder):
        hackathon_id = await builder.create()
        judges = await builder.add_judges(hackathon_id, 2)
        await builder.add_projects(hackathon_id, 1)
        await builder.score(judges[0], hackathon_id, 0, 5)

        with pytest.raises(NotReadyError):
            await client.aggregate_scores(ORGANIZER, hackathon_id, 0)
        assert (await client.get_hackathon(hackathon_id)).aggregated_project_count == 0

    @pytest.mark.asyncio
    async def test_non_organizer_rejected(self, client, builder):
        hackathon_id = await builder.ready()
        with pytest.raises(NotOrganizerError):
            await client.aggregate_scores("0xjudge0", hackathon_id, 0)

    @pytest.mark.asyncio
    async def test_unknown_project_rejected(self, client, builder):
        hackathon_id = await builder.ready(projects=2)
        with pytest.raises(UnknownProjectError):
            await client.aggregate_scores(ORGANIZER, hackathon_id, 2)

    @pytest.mark.asyncio
    async def test_aggregate_is_sum_of_scores(self, client, builder, cipher):
        hackathon_id = await builder.create()
        judges = await builder.add_judges(hackathon_id, 3)
        await builder.add_projects(hackathon_id, 1)
        for judge, value in zip(judges, (4, 9, 6)):
            await builder.score(judge, hackathon_id, 0, value)

        receipt = await client.aggregate_scores(ORGANIZER, hackathon_id, 0)
        assert receipt.result["created"] is True
        assert receipt.result["score_count"] == 3

        aggregate = await client.get_aggregate(hackathon_id, 0)
        assert cipher.decode(bytes.fromhex(aggregate.payload)) == 19
        assert aggregate.aggregated_by == ORGANIZER

    @pytest.mark.asyncio
    async def test_submission_order_does_not_matter(self, client, builder, cipher):
        values = {"0xjudge0": 3, "0xjudge1": 8}

        first = await builder.create()
        await builder.add_judges(first, 2)
        await builder.add_projects(first, 1)
        for judge in ("0xjudge0", "0xjudge1"):
            await builder.score(judge, first, 0, values[judge])

        second = await builder.create()
        await builder.add_judges(second, 2)
        await builder.add_projects(second, 1)
        for judge in ("0xjudge1", "0xjudge0"):
            await builder.score(judge, second, 0, values[judge])

        await client.aggregate_scores(ORGANIZER, first, 0)
        await client.aggregate_scores(ORGANIZER, second, 0)
        a = await client.get_aggregate(first, 0)
        b = await client.get_aggregate(second, 0)
        assert a.payload == b.payload

    @pytest.mark.asyncio
    async def test_idempotent_per_project(self, client, builder):
        hackathon_id = await builder.ready()
        await client.aggregate_scores(ORGANIZER, hackathon_id, 1)
        before = await client.get_aggregate(hackathon_id, 1)

        receipt = await client.aggregate_scores(ORGANIZER, hackathon_id, 1)
        assert receipt.result["created"] is False
        assert await client.get_aggregate(hackathon_id, 1) == before
        assert (await client.get_hackathon(hackathon_id)).aggregated_project_count == 1

    @pytest.mark.asyncio
    async def test_flag_set_only_after_last_project(self, client, builder):
        hackathon_id = await builder.ready(projects=3)

        for project_id in (2, 0):
            await client.aggregate_scores(ORGANIZER, hackathon_id, project_id)
            hackathon = await client.get_hackathon(hackathon_id)
            assert hackathon.scores_aggregated is False

        await client.aggregate_scores(ORGANIZER, hackathon_id, 1)
        hackathon = await client.get_hackathon(hackathon_id)
        assert hackathon.scores_aggregated is True
        assert hackathon.aggregated_project_count == 3

    @pytest.mark.asyncio
    async def test_partial_batch_retry(self, client, builder):
        hackathon_id = await builder.ready(projects=3)
        await client.aggregate_scores(ORGANIZER, hackathon_id, 0)

        # retry the whole batch after a failure part-way through
        for project_id in range(3):
            await client.aggregate_scores(ORGANIZER, hackathon_id, project_id)

        hackathon = await client.get_hackathon(hackathon_id)
        assert hackathon.scores_aggregated is True
        assert hackathon.aggregated_project_count == 3


class TestLifecyclePhase:

    @pytest.mark.asyncio
    async def test_phases_through_aggregation(self, client, builder, clock):
        clock.set(T0 - timedelta(minutes=5))
        hackathon_id = await builder.create()
        assert (await client.get_lifecycle(hackathon_id)).phase == "created"

        judges = await builder.add_judges(hackathon_id, 1)
        clock.set(T0 + timedelta(minutes=5))
        assert (await client.get_lifecycle(hackathon_id)).phase == "registration_open"

        await builder.add_projects(hackathon_id, 2)
        await builder.score_all(hackathon_id, judges, [0, 1])
        lifecycle = await client.get_lifecycle(hackathon_id)
        assert lifecycle.phase == "all_scores_submitted"
        assert lifecycle.scores_ready is True
        assert "aggregate_scores" in lifecycle.allowed_operations

        await client.aggregate_scores(ORGANIZER, hackathon_id, 0)
        lifecycle = await client.get_lifecycle(hackathon_id)
        assert lifecycle.phase == "aggregating"
        assert "submit_score" not in lifecycle.allowed_operations

        await client.aggregate_scores(ORGANIZER, hackathon_id, 1)
        lifecycle = await client.get_lifecycle(hackathon_id)
        assert lifecycle.phase == "aggregated"
        assert lifecycle.allowed_operations == ["aggregate_scores", "publish_rankings"]

    @pytest.mark.asyncio
    async def test_closed_without_readiness(self, client, builder, clock):
        hackathon_id = await builder.create()
        await builder.add_judges(hackathon_id, 1)
        await builder.add_projects(hackathon_id, 1)
        clock.set(T0 + WINDOW + timedelta(minutes=1))
        assert (await client.get_lifecycle(hackathon_id)).phase == "registration_closed"
