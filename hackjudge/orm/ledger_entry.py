"""
hackjudge/orm/ledger_entry.py
Append-only, hash-chained record of every committed transaction.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, event

from hackjudge.orm.base import Base
from hackjudge.orm.hackathon import ImmutableRecordError


class LedgerEntry(Base):
    """
    One committed ledger transaction.

    Hash = SHA256(previous_hash + sorted_json(args) + op + caller + timestamp).
    The first entry links to "GENESIS".
    """
    __tablename__ = "ledger_entries"

    sequence = Column(Integer, primary_key=True, autoincrement=False)
    op = Column(String(40), nullable=False)
    caller = Column(String(128), nullable=False)
    hackathon_id = Column(Integer, nullable=True)
    args_json = Column(Text, nullable=False)
    result_json = Column(Text, nullable=True)
    event_hash = Column(String(64), nullable=False, unique=True)
    previous_hash = Column(String(64), nullable=False)
    committed_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_ledger_hackathon", "hackathon_id", "sequence"),
        Index("idx_ledger_op", "op"),
    )


@event.listens_for(LedgerEntry, "before_update")
def prevent_ledger_update(mapper, connection, target):
    """Prevent updates to ledger entries (append-only)."""
    raise ImmutableRecordError("LedgerEntry is append-only. Updates are prohibited.")


@event.listens_for(LedgerEntry, "before_delete")
def prevent_ledger_delete(mapper, connection, target):
    """Prevent deletions from ledger (append-only)."""
    raise ImmutableRecordError("LedgerEntry is append-only. Deletions are prohibited.")
