from .base import Base

from .hackathon import Hackathon, Project, Judge, ImmutableRecordError
from .score import Score, Aggregate
from .ledger_entry import LedgerEntry

__all__ = [
    "Base",
    "Hackathon",
    "Project",
    "Judge",
    "ImmutableRecordError",
    "Score",
    "Aggregate",
    "LedgerEntry",
]
