"""
Ledger CLI commands.
"""
import asyncio

from hackjudge.cli.common import judging_client
from hackjudge.config.settings import Settings


class LedgerCommand:
    """Ledger CLI command handler."""

    def __init__(self, settings: Settings, dry_run: bool = False):
        self.settings = settings
        self.dry_run = dry_run

    def execute(self, args) -> int:
        if args.ledger_action == "verify":
            return asyncio.run(self._async_verify())
        print("Error: Unknown ledger action")
        return 1

    async def _async_verify(self) -> int:
        """Recompute the hash chain and report any broken entries."""
        print("=== Ledger Chain Verification ===")
        async with judging_client(self.settings) as client:
            chain = await client.verify_ledger_chain()

        print(f"Entries: {chain.total_entries}")
        if chain.total_entries:
            print(f"Sequence: {chain.first_sequence}..{chain.last_sequence}")

        if chain.is_valid:
            print("✓ Ledger chain is intact")
            return 0

        print("✗ Ledger chain is broken:")
        for error in chain.errors:
            print(f"  - {error}")
        return 1
