from hackjudge.routes import hackathons, ledger

__all__ = ["hackathons", "ledger"]
