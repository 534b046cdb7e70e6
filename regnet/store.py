"""
store.py - In-memory transactional ledger substrate

InMemoryLedgerStore is the reference implementation of the key-value ledger
the registry runs on. It is the only module that mutates persisted bytes.

Key responsibilities:
    - Hands out one LedgerTransaction per invocation (begin / transaction)
    - Buffers writes until commit, with read-your-writes inside a transaction
    - Applies a transaction's writes atomically (all commit or none do)
    - Detects conflicting concurrent transactions at commit time by comparing
      the version of every key the transaction read (optimistic concurrency)
    - Rejects reuse of a committed transaction id
    - Keeps an ordered log of committed transactions
    - Tracks time (logical when an initial time is given, wall clock otherwise)
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Set, Tuple
import hashlib
import threading

from .core import (
    TransactionClosedError,
    TransactionConflict,
    DuplicateTransactionError,
)
from .keys import describe_key
from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CommittedTransaction:
    """
    Immutable record of a committed transaction.

    Attributes:
        tx_id: Transaction identifier (unique within the store)
        sequence_number: Monotonic commit order within the store
        commit_time: Store time at which the writes became visible
        operation: Name of the operation that produced the writes (may be empty)
        writes: (key, value) pairs in the order they were first written
    """
    tx_id: str
    sequence_number: int
    commit_time: datetime
    operation: str
    writes: Tuple[Tuple[str, bytes], ...]

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(key for key, _ in self.writes)

    def __repr__(self) -> str:
        return (
            f"CommittedTransaction(#{self.sequence_number} {self.tx_id} "
            f"{self.operation or '-'}: {len(self.writes)} writes)"
        )


class LedgerTransaction:
    """
    Transactional handle for one invocation.

    Satisfies the KeyValueStore protocol. Reads go to committed state (and
    record the version seen) unless the transaction already wrote the key.
    Writes stay private to the transaction until commit().

    A transaction is closed by commit() or discard(); a closed transaction
    refuses every further call.
    """

    def __init__(self, store: InMemoryLedgerStore, tx_id: str, timestamp: datetime):
        self._store = store
        self.tx_id = tx_id
        self.timestamp = timestamp
        self.operation = ""
        self._writes: Dict[str, bytes] = {}
        self._read_versions: Dict[str, int] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def writes(self) -> Tuple[Tuple[str, bytes], ...]:
        """Pending writes in first-write order."""
        return tuple(self._writes.items())

    @property
    def read_set(self) -> Dict[str, int]:
        """Versions of committed keys read by this transaction."""
        return dict(self._read_versions)

    def _check_open(self) -> None:
        if self._closed:
            raise TransactionClosedError(f"Transaction {self.tx_id} is closed")

    def get(self, key: str) -> Optional[bytes]:
        """Return the value for key as this transaction sees it, or None."""
        self._check_open()
        if key in self._writes:
            return self._writes[key]
        value, version = self._store._read(key)
        self._read_versions.setdefault(key, version)
        return value

    def put(self, key: str, value: bytes) -> None:
        """Buffer a write of value under key."""
        self._check_open()
        if not isinstance(key, str) or not key:
            raise ValueError("key cannot be empty")
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError(f"value must be bytes, got {type(value).__name__}")
        self._writes[key] = bytes(value)

    def commit(self) -> CommittedTransaction:
        """
        Make every buffered write visible at once.

        Raises:
            TransactionConflict: If a key read by this transaction was changed
                                 by another commit in the meantime.
            DuplicateTransactionError: If the tx_id was already committed.
            TransactionClosedError: If the transaction is already closed.
        """
        self._check_open()
        try:
            return self._store._commit(self)
        finally:
            self._closed = True

    def discard(self) -> None:
        """Drop every buffered write. Safe to call on a closed transaction."""
        self._writes.clear()
        self._closed = True

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"LedgerTransaction({self.tx_id}, {len(self._writes)} writes, {state})"


class InMemoryLedgerStore:
    """
    Process-local transactional key-value ledger.

    Commits are serialized by a lock, so the store may be shared between
    threads; each thread must use its own transactions.

    Example:
        store = InMemoryLedgerStore("regnet", initial_time=datetime(2025, 1, 1))
        with store.transaction() as tx:
            tx.put("k", b"v")
        assert store.get_state("k") == b"v"
    """

    def __init__(self, name: str = "regnet", initial_time: Optional[datetime] = None):
        """
        Create a store.

        Args:
            name: Store identifier, used in generated transaction ids
            initial_time: Starting logical time. When omitted, the store
                          follows the wall clock in UTC.
        """
        self.name = name
        self._state: Dict[str, bytes] = {}
        self._versions: Dict[str, int] = {}
        self.transaction_log: List[CommittedTransaction] = []
        self.seen_tx_ids: Set[str] = set()
        self._next_sequence: int = 1
        self._next_begin: int = 0
        self._logical_time: Optional[datetime] = initial_time
        self._lock = threading.Lock()

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        if self._logical_time is not None:
            return self._logical_time
        return datetime.now(timezone.utc)

    def advance_time(self, new_time: datetime) -> None:
        """
        Advance the logical clock. Time can only move forward.

        Raises:
            ValueError: If the store follows the wall clock, or new_time is in the past
        """
        if self._logical_time is None:
            raise ValueError("Store follows the wall clock; create it with initial_time")
        if new_time < self._logical_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._logical_time}"
            )
        self._logical_time = new_time

    # ========================================================================
    # READ-ONLY ACCESS TO COMMITTED STATE
    # ========================================================================

    def get_state(self, key: str) -> Optional[bytes]:
        """Committed value for key, or None."""
        with self._lock:
            return self._state.get(key)

    def version(self, key: str) -> int:
        """Sequence number of the commit that last wrote key (0 if never)."""
        with self._lock:
            return self._versions.get(key, 0)

    def snapshot(self) -> Dict[str, bytes]:
        """Copy of the whole committed state."""
        with self._lock:
            return dict(self._state)

    def has_committed(self, tx_id: str) -> bool:
        with self._lock:
            return tx_id in self.seen_tx_ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._state)

    # ========================================================================
    # TRANSACTIONS
    # ========================================================================

    def _generate_tx_id(self) -> str:
        """
        Generate a transaction id.

        Format: sha256 of "{store}:{begin counter}:{timestamp}", first 16 hex chars.
        """
        with self._lock:
            counter = self._next_begin
            self._next_begin += 1
        content = f"{self.name}:{counter}:{self.current_time.isoformat()}"
        return hashlib.sha256(content.encode()).hexdigest()[:16]

    def begin(self, tx_id: Optional[str] = None) -> LedgerTransaction:
        """Open a new transaction, timestamped with the current store time."""
        return LedgerTransaction(self, tx_id or self._generate_tx_id(), self.current_time)

    @contextmanager
    def transaction(self, tx_id: Optional[str] = None) -> Iterator[LedgerTransaction]:
        """
        Run a block inside one transaction.

        Commits when the block exits normally, discards when it raises.
        """
        tx = self.begin(tx_id)
        try:
            yield tx
        except BaseException:
            tx.discard()
            raise
        if not tx.closed:
            tx.commit()

    def _read(self, key: str) -> Tuple[Optional[bytes], int]:
        with self._lock:
            return self._state.get(key), self._versions.get(key, 0)

    def _commit(self, tx: LedgerTransaction) -> CommittedTransaction:
        with self._lock:
            if tx.tx_id in self.seen_tx_ids:
                raise DuplicateTransactionError(f"Transaction {tx.tx_id} already committed")

            for key, seen in tx.read_set.items():
                current = self._versions.get(key, 0)
                if current != seen:
                    logger.warning(
                        "Conflict on %s: read version %d, found %d (tx=%s)",
                        describe_key(key), seen, current, tx.tx_id,
                    )
                    raise TransactionConflict(
                        f"Transaction {tx.tx_id} read {describe_key(key)} at version "
                        f"{seen}, but it is now at version {current}"
                    )

            sequence = self._next_sequence
            record = CommittedTransaction(
                tx_id=tx.tx_id,
                sequence_number=sequence,
                commit_time=self.current_time,
                operation=tx.operation,
                writes=tx.writes,
            )
            for key, value in record.writes:
                self._state[key] = value
                self._versions[key] = sequence
            self._next_sequence += 1
            self.transaction_log.append(record)
            self.seen_tx_ids.add(tx.tx_id)

        logger.debug("Committed %r", record)
        return record

    def __repr__(self) -> str:
        return f"InMemoryLedgerStore({self.name!r}, {len(self._state)} keys, {len(self.transaction_log)} commits)"
