"""
Shared fixtures: an in-memory database per test, a controllable clock, the
mock cipher and a JudgingClient wired to all three.
"""
from datetime import datetime, timedelta
from typing import AsyncGenerator, List

import pytest
import pytest_asyncio

from hackjudge.client import JudgingClient, create_ledger
from hackjudge.config.settings import Settings
from hackjudge.crypto.mock_cipher import MockAdditiveCipher
from hackjudge.database import Database
from hackjudge.ledger import Ledger

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

T0 = datetime(2026, 3, 1, 9, 0, 0)
WINDOW = timedelta(hours=2)

ORGANIZER = "0xorganizer"
TEAM_LEAD = "0xteamlead"


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self.now = now


class HackathonBuilder:
    """Shortcuts for putting a hackathon into a known state."""

    def __init__(self, client: JudgingClient, cipher: MockAdditiveCipher):
        self.client = client
        self.cipher = cipher

    async def create(self, start: datetime = T0, end: datetime = T0 + WINDOW, organizer: str = ORGANIZER) -> int:
        receipt = await self.client.create_hackathon(
            organizer,
            name="Encrypted Judging Hack",
            description="Test hackathon",
            start_time=start,
            end_time=end,
        )
        return receipt.result["hackathon_id"]

    async def add_judges(self, hackathon_id: int, count: int, organizer: str = ORGANIZER) -> List[str]:
        judges = [f"0xjudge{i}" for i in range(count)]
        for judge in judges:
            await self.client.register_judge(organizer, hackathon_id, judge)
        return judges

    async def add_projects(self, hackathon_id: int, count: int) -> List[int]:
        project_ids = []
        for i in range(count):
            receipt = await self.client.register_project(
                TEAM_LEAD,
                hackathon_id,
                name=f"Project {i}",
                description=f"Description {i}",
                github_url=f"https://github.com/example/project-{i}",
                demo_url=f"https://demo.example.com/project-{i}",
            )
            project_ids.append(receipt.result["project_id"])
        return project_ids

    async def score(self, judge: str, hackathon_id: int, project_id: int, value: int):
        payload, proof = self.cipher.encode(value)
        return await self.client.submit_score(judge, hackathon_id, project_id, payload, proof)

    async def score_all(self, hackathon_id: int, judges: List[str], project_ids: List[int], value: int = 5) -> None:
        for judge in judges:
            for project_id in project_ids:
                await self.score(judge, hackathon_id, project_id, value)

    async def ready(self, judges: int = 2, projects: int = 3) -> int:
        """Hackathon where every judge has scored every project."""
        hackathon_id = await self.create()
        judge_addresses = await self.add_judges(hackathon_id, judges)
        project_ids = await self.add_projects(hackathon_id, projects)
        await self.score_all(hackathon_id, judge_addresses, project_ids)
        return hackathon_id

    async def aggregated(self, judges: int = 2, projects: int = 3) -> int:
        hackathon_id = await self.ready(judges, projects)
        for project_id in range(projects):
            await self.client.aggregate_scores(ORGANIZER, hackathon_id, project_id)
        return hackathon_id


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        environment="test",
        mock_cipher_key="test-cipher-key",
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0 + timedelta(minutes=10))


@pytest.fixture
def cipher(settings) -> MockAdditiveCipher:
    return MockAdditiveCipher.from_settings(settings)


@pytest_asyncio.fixture
async def database(settings) -> AsyncGenerator[Database, None]:
    db = Database(settings)
    await db.init()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def ledger(settings, database, cipher, clock) -> Ledger:
    return create_ledger(settings, database, combiner=cipher, verifier=cipher, clock=clock)


@pytest_asyncio.fixture
async def client(ledger) -> JudgingClient:
    return JudgingClient(ledger)


@pytest_asyncio.fixture
async def builder(client, cipher) -> HackathonBuilder:
    return HackathonBuilder(client, cipher)
