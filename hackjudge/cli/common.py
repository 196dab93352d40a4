"""
Shared helpers for CLI command handlers.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from hackjudge.client import JudgingClient, create_ledger
from hackjudge.config.settings import Settings
from hackjudge.database import Database


@asynccontextmanager
async def judging_client(settings: Settings) -> AsyncIterator[JudgingClient]:
    """Open the configured database for the duration of one command."""
    database = Database(settings)
    await database.init()
    try:
        yield JudgingClient(create_ledger(settings, database))
    finally:
        await database.close()


def yes_no(value: bool) -> str:
    return "yes" if value else "no"
