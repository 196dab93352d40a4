"""
Hackathon CLI commands: list, show, ready
"""
import asyncio

from hackjudge.cli.common import judging_client, yes_no
from hackjudge.config.settings import Settings
from hackjudge.errors import JudgingError


class HackathonCommand:
    """Hackathon CLI command handler."""

    def __init__(self, settings: Settings, dry_run: bool = False):
        self.settings = settings
        self.dry_run = dry_run

    def execute(self, args) -> int:
        if args.hackathon_action == "list":
            handler = self._async_list(args.offset, args.limit)
        elif args.hackathon_action == "show":
            handler = self._async_show(args.id)
        elif args.hackathon_action == "ready":
            handler = self._async_ready(args.id)
        else:
            print("Error: Unknown hackathon action")
            return 1

        try:
            return asyncio.run(handler)
        except JudgingError as e:
            print(f"Error: {e.message}")
            return 1

    async def _async_list(self, offset: int, limit) -> int:
        print("=== Hackathons ===")
        async with judging_client(self.settings) as client:
            hackathons = await client.list_hackathons(offset=offset, limit=limit)

        if not hackathons:
            print("No hackathons found")
            return 0

        print(f"\n{'ID':<5} {'Name':<36} {'Projects':<9} {'Judges':<7} {'Active':<7} {'Published':<9}")
        print("-" * 78)
        for h in hackathons:
            print(
                f"{h.id:<5} {h.name[:34]:<36} {h.project_count:<9} {h.judge_count:<7} "
                f"{yes_no(h.is_active):<7} {yes_no(h.rankings_published):<9}"
            )
        return 0

    async def _async_show(self, hackathon_id: int) -> int:
        async with judging_client(self.settings) as client:
            hackathon = await client.get_hackathon(hackathon_id)
            lifecycle = await client.get_lifecycle(hackathon_id)
            projects = await client.list_projects(hackathon_id)
            judges = await client.list_judges(hackathon_id)

        print(f"=== Hackathon {hackathon.id}: {hackathon.name} ===")
        print(f"Organizer:   {hackathon.organizer}")
        print(f"Window:      {hackathon.start_time.isoformat()} .. {hackathon.end_time.isoformat()}")
        print(f"Phase:       {lifecycle.phase}")
        print(f"Aggregated:  {hackathon.aggregated_project_count}/{hackathon.project_count}")
        if hackathon.final_standings_hash:
            print(f"Standings:   {hackathon.final_standings_hash}")

        print(f"\nProjects ({len(projects)}):")
        for p in sorted(projects, key=lambda p: (p.public_rank == 0, p.public_rank, p.id)):
            rank = f"#{p.public_rank}" if p.public_rank else "-"
            print(f"  {p.id:<4} {rank:<5} {p.name} (lead: {p.team_lead})")

        print(f"\nJudges ({len(judges)}):")
        for j in judges:
            status = "✓" if j.has_submitted_all_scores else " "
            print(f"  [{status}] {j.address} ({j.projects_scored}/{hackathon.project_count})")
        return 0

    async def _async_ready(self, hackathon_id: int) -> int:
        async with judging_client(self.settings) as client:
            ready = await client.are_scores_ready_for_aggregation(hackathon_id)
            lifecycle = await client.get_lifecycle(hackathon_id)

        print(f"Hackathon {hackathon_id} ready for aggregation: {yes_no(ready)}")
        print(f"Phase: {lifecycle.phase}")
        print(f"Allowed operations: {', '.join(lifecycle.allowed_operations) or 'none'}")
        return 0
