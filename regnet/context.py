"""
context.py - Per-invocation context

An InvocationContext is the only way an operation reaches the ledger. It
bundles the transactional handle for this invocation with the caller's
role claim and the invocation timestamp. A context lives exactly as long as
one invocation; nothing is shared between contexts except committed state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .config import RegistryConfig, DEFAULT_CONFIG
from .core import KeyValueStore


@dataclass(frozen=True)
class InvocationContext:
    """
    Attributes:
        stub: Transactional key-value handle for this invocation.
        msp_id: Organizational claim of the caller (e.g. "usersMSP").
        timestamp: Invocation time, stamped on every record written.
        tx_id: Identifier of the enclosing transaction, for logs.
        config: Registry configuration (namespace and role mapping).
    """
    stub: KeyValueStore
    msp_id: Optional[str]
    timestamp: datetime
    tx_id: str = ""
    config: RegistryConfig = field(default=DEFAULT_CONFIG)

    @property
    def namespace(self) -> str:
        return self.config.namespace

    @classmethod
    def for_transaction(cls, tx, msp_id: Optional[str], config: Optional[RegistryConfig] = None) -> InvocationContext:
        """Build a context around a LedgerTransaction, using its timestamp and id."""
        return cls(
            stub=tx,
            msp_id=msp_id,
            timestamp=tx.timestamp,
            tx_id=tx.tx_id,
            config=config or DEFAULT_CONFIG,
        )
