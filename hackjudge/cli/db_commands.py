"""
Database CLI commands.
"""
import asyncio

from sqlalchemy.exc import SQLAlchemyError

from hackjudge.config.settings import Settings
from hackjudge.database import Database


class DbCommand:
    """Database CLI command handler."""

    def __init__(self, settings: Settings, dry_run: bool = False):
        self.settings = settings
        self.dry_run = dry_run

    def execute(self, args) -> int:
        if args.db_action == "init":
            return self._init(args)
        print("Error: Unknown db action")
        return 1

    def _init(self, args) -> int:
        """Create all tables."""
        print(f"Initialising database at {self.settings.database_url}")

        if self.dry_run:
            print("[DRY RUN] Would create all tables")
            return 0

        try:
            asyncio.run(self._async_init())
        except SQLAlchemyError as e:
            print(f"Error: {e}")
            return 1

        print("✓ Database ready")
        return 0

    async def _async_init(self) -> None:
        database = Database(self.settings)
        await database.init()
        await database.close()
