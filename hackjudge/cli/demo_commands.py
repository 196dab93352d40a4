"""
Demo CLI command: one hackathon from creation to published rankings.
"""
import asyncio

from hackjudge.cli.common import judging_client
from hackjudge.config.settings import Settings
from hackjudge.crypto.mock_cipher import MockAdditiveCipher
from hackjudge.errors import JudgingError
from hackjudge.workflows.complete_workflow import run_complete_workflow


class DemoCommand:
    """Demo CLI command handler."""

    def __init__(self, settings: Settings, dry_run: bool = False):
        self.settings = settings
        self.dry_run = dry_run

    def execute(self, args) -> int:
        if self.dry_run:
            print("[DRY RUN] Would run the complete judging workflow")
            return 0

        try:
            return asyncio.run(self._async_demo(args.seed))
        except JudgingError as e:
            print(f"Error: {e.code} - {e.message}")
            return 1

    async def _async_demo(self, seed) -> int:
        print("🚀 Starting complete judging workflow...\n")
        cipher = MockAdditiveCipher.from_settings(self.settings)

        async with judging_client(self.settings) as client:
            result = await run_complete_workflow(client, cipher, seed=seed)
            projects = {p.id: p for p in await client.list_projects(result.hackathon_id)}
            standings = await client.verify_standings(result.hackathon_id)

        print(f"Hackathon {result.hackathon_id}: {len(projects)} projects, {len(result.judges)} judges")
        for batch in result.batches:
            print(f"  {batch.judge}: {batch.succeeded}/{batch.total} scores accepted")

        print("\n🏆 Final rankings:")
        for rank, project_id in enumerate(result.rankings, start=1):
            print(f"  {rank}. {projects[project_id].name} (total {result.totals[project_id]})")

        print(f"\nStandings hash: {result.final_standings_hash}")
        print(f"Standings verified: {'✓' if standings.is_valid else '✗'}")
        return 0 if standings.is_valid else 1
