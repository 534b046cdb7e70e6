"""
accounts.py - Account ledger

Balances only grow here. recharge() credits a fixed amount chosen by a bank
transaction code from the closed RECHARGE_TIERS table; the only debit in the
system is the buyer leg of a purchase (see properties.purchase).
"""

from __future__ import annotations

from .context import InvocationContext
from .core import (
    ExecuteResult,
    RECHARGE_TIERS,
    Role,
    InvalidCodeError,
    NotFoundError,
)
from .entities import exists, load, save
from .keys import account_key
from .logging import get_logger
from .records import Account
from .roles import require_role

logger = get_logger(__name__)


def recharge_amount(code: str) -> int:
    """
    Coins credited for a bank transaction code.

    Raises:
        InvalidCodeError: If code is not in RECHARGE_TIERS.
    """
    try:
        return RECHARGE_TIERS[code]
    except (KeyError, TypeError):
        raise InvalidCodeError(f"Invalid bank transaction code {code!r}") from None


def recharge(ctx: InvocationContext, name: str, tax_id: str, recharge_code: str) -> ExecuteResult:
    """
    Credit an account according to a bank transaction code.

    Raises:
        AuthorizationError: If the caller is not an applicant.
        InvalidCodeError: If recharge_code is not a known tier.
        NotFoundError: If the account does not exist.
    """
    require_role(ctx, Role.APPLICANT, "recharge their accounts")
    amount = recharge_amount(recharge_code)

    key = account_key(name, tax_id, ctx.namespace)
    if not exists(ctx.stub, key):
        raise NotFoundError(f"No account exists for {name} with tax id {tax_id}")

    account = load(ctx.stub, key, Account)
    updated = account.credit(amount, ctx.timestamp)
    save(ctx.stub, key, updated)
    logger.debug(
        "Recharged %s by %d: %d -> %d (tx=%s)",
        name, amount, account.balance, updated.balance, ctx.tx_id,
    )
    return ExecuteResult.APPLIED


def view_account(ctx: InvocationContext, name: str, tax_id: str) -> Account:
    """
    Current state of an account. Read-only and open to every role.

    Raises:
        NotFoundError: If the account does not exist.
    """
    key = account_key(name, tax_id, ctx.namespace)
    return load(
        ctx.stub, key, Account,
        message=f"No account exists for {name} with tax id {tax_id}",
    )
