"""
Ranking publication tests.
"""
import pytest

from conftest import ORGANIZER, TEAM_LEAD
from hackjudge.errors import (
    AlreadyPublishedError, InvalidPermutationError, NotAggregatedError, NotOrganizerError
)


class TestPublishRankings:

    @pytest.mark.asyncio
    async def test_not_aggregated_rejected(self, client, builder):
        hackathon_id = await builder.ready(projects=3)
        await client.aggregate_scores(ORGANIZER, hackathon_id, 0)
        with pytest.raises(NotAggregatedError):
            await client.publish_rankings(ORGANIZER, hackathon_id, [0, 1, 2])
        assert (await client.get_hackathon(hackathon_id)).rankings_published is False

    @pytest.mark.asyncio
    async def test_non_organizer_rejected(self, client, builder):
        hackathon_id = await builder.aggregated()
        with pytest.raises(NotOrganizerError):
            await client.publish_rankings(TEAM_LEAD, hackathon_id, [0, 1, 2])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("project_ids", [
        [0, 1],
        [0, 1, 1],
        [0, 1, 2, 3],
        [1, 2, 3],
        [0, 1, -1],
    ])
    async def test_not_a_permutation(self, client, builder, project_ids):
        hackathon_id = await builder.aggregated(projects=3)
        with pytest.raises(InvalidPermutationError):
            await client.publish_rankings(ORGANIZER, hackathon_id, project_ids)

        projects = await client.list_projects(hackathon_id)
        assert all(p.public_rank == 0 for p in projects)
        assert await client.get_project_rankings(hackathon_id) == []

    @pytest.mark.asyncio
    async def test_ranks_follow_given_order(self, client, builder):
        hackathon_id = await builder.aggregated(projects=4)
        await client.publish_rankings(ORGANIZER, hackathon_id, [3, 1, 0, 2])

        ranks = {p.id: p.public_rank for p in await client.list_projects(hackathon_id)}
        assert ranks == {3: 1, 1: 2, 0: 3, 2: 4}
        assert await client.get_project_rankings(hackathon_id) == [3, 1, 0, 2]

        hackathon = await client.get_hackathon(hackathon_id)
        assert hackathon.rankings_published is True
        assert hackathon.scores_aggregated is True

    @pytest.mark.asyncio
    async def test_publication_is_irreversible(self, client, builder):
        hackathon_id = await builder.aggregated(projects=2)
        await client.publish_rankings(ORGANIZER, hackathon_id, [1, 0])

        with pytest.raises(AlreadyPublishedError):
            await client.publish_rankings(ORGANIZER, hackathon_id, [0, 1])
        assert await client.get_project_rankings(hackathon_id) == [1, 0]
        assert (await client.get_lifecycle(hackathon_id)).phase == "published"
        assert (await client.get_lifecycle(hackathon_id)).allowed_operations == ["aggregate_scores"]

    @pytest.mark.asyncio
    async def test_reaggregate_after_publication_returns_stored(self, client, builder, cipher):
        hackathon_id = await builder.aggregated(projects=2)
        await client.publish_rankings(ORGANIZER, hackathon_id, [1, 0])

        receipt = await client.aggregate_scores(ORGANIZER, hackathon_id, 1)
        assert receipt.result["created"] is False
        aggregate = await client.get_aggregate(hackathon_id, 1)
        assert cipher.decode(bytes.fromhex(aggregate.payload)) == 10
        assert await client.get_project_rankings(hackathon_id) == [1, 0]


class TestStandingsIntegrity:

    @pytest.mark.asyncio
    async def test_unpublished_has_no_standings(self, client, builder):
        hackathon_id = await builder.aggregated(projects=2)
        result = await client.verify_standings(hackathon_id)
        assert result.is_valid is False
        assert result.stored_hash is None

    @pytest.mark.asyncio
    async def test_published_standings_verify(self, client, builder):
        hackathon_id = await builder.aggregated(projects=3)
        receipt = await client.publish_rankings(ORGANIZER, hackathon_id, [2, 0, 1])

        result = await client.verify_standings(hackathon_id)
        assert result.is_valid is True
        assert result.stored_hash == receipt.result["final_standings_hash"]
        assert result.computed_hash == result.stored_hash
        assert len(result.stored_hash) == 64

