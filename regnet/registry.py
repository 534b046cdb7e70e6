"""
registry.py - Invocation gateway

The Registry is the entry point for callers. It owns the binding between an
operation name and the function that implements it, and runs every
invocation inside exactly one substrate transaction:

    submit()    run the operation, commit on success, discard on failure
    evaluate()  run a view operation in a transaction that is never committed

Outcomes are returned as an InvocationResult rather than raised, so a caller
always receives an explicit APPLIED / ALREADY_APPLIED / REJECTED status. Any
RegistryError (including a commit-time TransactionConflict) becomes REJECTED
with nothing committed. Programming errors (TypeError, ValueError) propagate.

Example:
    registry = Registry()
    registry.submit("usersMSP", "request_account", "alice", "a@x.io", "555", "1001")
    registry.submit("registrarMSP", "approve_account", "alice", "1001")
    result = registry.evaluate("usersMSP", "view_account", "alice", "1001")
    assert result.payload.balance == 0
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .accounts import recharge, view_account
from .config import RegistryConfig, DEFAULT_CONFIG
from .context import InvocationContext
from .core import DuplicateTransactionError, ExecuteResult, RegistryError
from .logging import get_logger
from .properties import purchase, update_status, view_property
from .registration import approve_account, approve_property, request_account, request_property
from .store import InMemoryLedgerStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class Operation:
    """An invocable operation. View operations have mutating=False."""
    name: str
    func: Callable[..., Any]
    mutating: bool


OPERATIONS: Dict[str, Operation] = {
    op.name: op for op in (
        Operation("request_account", request_account, True),
        Operation("approve_account", approve_account, True),
        Operation("view_account", view_account, False),
        Operation("recharge", recharge, True),
        Operation("request_property", request_property, True),
        Operation("approve_property", approve_property, True),
        Operation("view_property", view_property, False),
        Operation("update_status", update_status, True),
        Operation("purchase", purchase, True),
    )
}


@dataclass(frozen=True)
class InvocationResult:
    """
    Outcome of one invocation.

    Attributes:
        status: APPLIED, ALREADY_APPLIED or REJECTED
        tx_id: Transaction the invocation ran in
        operation: Operation name
        payload: Returned record (None for operations without a result)
        error: The RegistryError that caused a rejection
    """
    status: ExecuteResult
    tx_id: str
    operation: str
    payload: Any = None
    error: Optional[RegistryError] = None

    @property
    def ok(self) -> bool:
        return self.status is not ExecuteResult.REJECTED

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""

    def unwrap(self) -> Any:
        """Return the payload, or raise the error of a rejected invocation."""
        if self.error is not None:
            raise self.error
        return self.payload


class Registry:
    """
    Property registration network bound to one ledger substrate.

    Args:
        store: Ledger substrate (default: a fresh InMemoryLedgerStore)
        config: Registry configuration (default: DEFAULT_CONFIG)
    """

    def __init__(
        self,
        store: Optional[InMemoryLedgerStore] = None,
        config: Optional[RegistryConfig] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.store = store if store is not None else InMemoryLedgerStore()

    def instantiate(self) -> None:
        logger.info("Registry %s instantiated on %r", self.config.namespace, self.store)

    @staticmethod
    def _operation(name: str) -> Operation:
        try:
            return OPERATIONS[name]
        except KeyError:
            raise ValueError(f"Unknown operation {name!r}") from None

    def submit(
        self,
        msp_id: Optional[str],
        operation: str,
        *args: Any,
        tx_id: Optional[str] = None,
        **kwargs: Any,
    ) -> InvocationResult:
        """
        Run an operation in a new transaction and commit its writes.

        Args:
            msp_id: Caller's organizational claim
            operation: Operation name (see OPERATIONS)
            *args, **kwargs: Operation arguments
            tx_id: Optional transaction id. A tx_id that was already
                   committed is not run again (ALREADY_APPLIED).

        Returns:
            InvocationResult

        Raises:
            ValueError: If operation is unknown
        """
        op = self._operation(operation)

        if tx_id is not None and self.store.has_committed(tx_id):
            logger.info("ALREADY_APPLIED %s (tx=%s)", op.name, tx_id)
            return InvocationResult(ExecuteResult.ALREADY_APPLIED, tx_id, op.name)

        tx = self.store.begin(tx_id)
        tx.operation = op.name
        ctx = InvocationContext.for_transaction(tx, msp_id, self.config)
        try:
            payload = op.func(ctx, *args, **kwargs)
            tx.commit()
        except DuplicateTransactionError:
            # a concurrent submission committed this tx_id after the check above
            tx.discard()
            logger.info("ALREADY_APPLIED %s (tx=%s)", op.name, tx.tx_id)
            return InvocationResult(ExecuteResult.ALREADY_APPLIED, tx.tx_id, op.name)
        except RegistryError as e:
            tx.discard()
            logger.warning(
                "REJECTED %s: %s: %s", op.name, e.kind, e,
                extra={"extra": {"tx_id": tx.tx_id, "operation": op.name, "error_kind": e.kind}},
            )
            return InvocationResult(ExecuteResult.REJECTED, tx.tx_id, op.name, error=e)
        except BaseException:
            tx.discard()
            raise

        logger.info(
            "APPLIED %s (tx=%s)", op.name, tx.tx_id,
            extra={"extra": {"tx_id": tx.tx_id, "operation": op.name}},
        )
        if isinstance(payload, ExecuteResult):
            payload = None
        return InvocationResult(ExecuteResult.APPLIED, tx.tx_id, op.name, payload=payload)

    def evaluate(self, msp_id: Optional[str], operation: str, *args: Any, **kwargs: Any) -> InvocationResult:
        """
        Run a view operation without committing anything.

        Raises:
            ValueError: If operation is unknown or not a view operation
        """
        op = self._operation(operation)
        if op.mutating:
            raise ValueError(f"{op.name} modifies state; use submit()")

        tx = self.store.begin()
        ctx = InvocationContext.for_transaction(tx, msp_id, self.config)
        try:
            payload = op.func(ctx, *args, **kwargs)
        except RegistryError as e:
            return InvocationResult(ExecuteResult.REJECTED, tx.tx_id, op.name, error=e)
        finally:
            tx.discard()
        return InvocationResult(ExecuteResult.APPLIED, tx.tx_id, op.name, payload=payload)
