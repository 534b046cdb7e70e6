"""
registration.py - Request-then-approve workflow

Accounts and properties come into existence in two steps:
1. An applicant submits a registration request (request_account,
   request_property). The request is stored under the request namespace.
2. An approver approves it (approve_account, approve_property), which creates
   the entity under the entity namespace.

The request record is never deleted or altered by approval; the existence of
the entity key is what marks a request as approved. A second approval of the
same request fails with AlreadyApprovedError instead of overwriting the
entity.

Every function checks all of its preconditions before its single write.
"""

from __future__ import annotations
from typing import Union

from .context import InvocationContext
from .core import (
    AssetKind,
    PropertyStatus,
    Role,
    AlreadyApprovedError,
    DuplicateRequestError,
    InvalidPriceError,
    OwnerNotFoundError,
    RequestNotFoundError,
)
from .entities import exists, load, save
from .keys import account_id, entity_key, request_key
from .logging import get_logger
from .records import Account, AccountRequest, Property, PropertyRequest
from .roles import require_role

logger = get_logger(__name__)


def parse_price(price: Union[int, str]) -> int:
    """
    Coerce a price argument into a non-negative int.

    Accepts an int or a base-10 integer string such as "1500".

    Raises:
        InvalidPriceError: For any other value, or a negative amount.
    """
    if isinstance(price, bool):
        raise InvalidPriceError(f"Invalid price {price!r}")
    if isinstance(price, str):
        try:
            price = int(price.strip(), 10)
        except ValueError:
            raise InvalidPriceError(f"Invalid price {price!r}") from None
    if not isinstance(price, int):
        raise InvalidPriceError(f"Invalid price {price!r}")
    if price < 0:
        raise InvalidPriceError(f"Price cannot be negative, got {price}")
    return price


# ============================================================================
# ACCOUNTS
# ============================================================================

def request_account(
    ctx: InvocationContext,
    name: str,
    email: str,
    phone: str,
    tax_id: str,
) -> AccountRequest:
    """
    Submit a request to open an account.

    Raises:
        AuthorizationError: If the caller is not an applicant.
        DuplicateRequestError: If a request for (name, tax_id) already exists.
    """
    require_role(ctx, Role.APPLICANT, "initiate account registration requests")

    natural_id = account_id(name, tax_id)
    key = request_key(AssetKind.ACCOUNT, natural_id, ctx.namespace)
    if exists(ctx.stub, key):
        raise DuplicateRequestError(
            f"Registration request for {name} with tax id {tax_id} already placed"
        )

    request = AccountRequest(
        name=name,
        email=email,
        phone=phone,
        tax_id=tax_id,
        requested_at=ctx.timestamp,
    )
    save(ctx.stub, key, request)
    logger.debug("Account request %s recorded (tx=%s)", natural_id, ctx.tx_id)
    return request


def approve_account(ctx: InvocationContext, name: str, tax_id: str) -> Account:
    """
    Approve a pending account request, opening the account with balance 0.

    Raises:
        AuthorizationError: If the caller is not an approver.
        RequestNotFoundError: If no request exists for (name, tax_id).
        AlreadyApprovedError: If the account already exists.
    """
    require_role(ctx, Role.APPROVER, "approve account registration requests")

    natural_id = account_id(name, tax_id)
    req_key = request_key(AssetKind.ACCOUNT, natural_id, ctx.namespace)
    if not exists(ctx.stub, req_key):
        raise RequestNotFoundError(
            f"No registration request is available for {name} with tax id {tax_id}"
        )
    request = load(ctx.stub, req_key, AccountRequest)

    key = entity_key(AssetKind.ACCOUNT, natural_id, ctx.namespace)
    if exists(ctx.stub, key):
        raise AlreadyApprovedError(f"Account already exists for {name} with tax id {tax_id}")

    account = Account.from_request(request, ctx.timestamp)
    save(ctx.stub, key, account)
    logger.debug("Account %s approved (tx=%s)", natural_id, ctx.tx_id)
    return account


# ============================================================================
# PROPERTIES
# ============================================================================

def request_property(
    ctx: InvocationContext,
    owner_name: str,
    owner_tax_id: str,
    property_id: str,
    price: Union[int, str],
) -> PropertyRequest:
    """
    Submit a request to register a property owned by an existing account.

    Raises:
        AuthorizationError: If the caller is not an applicant.
        InvalidPriceError: If price is not a non-negative integer.
        DuplicateRequestError: If a request for property_id already exists.
        OwnerNotFoundError: If the owner has no account.
    """
    require_role(ctx, Role.APPLICANT, "register properties")
    amount = parse_price(price)

    key = request_key(AssetKind.PROPERTY, property_id, ctx.namespace)
    if exists(ctx.stub, key):
        raise DuplicateRequestError(
            f"There is already a registration request for property {property_id}"
        )

    owner_key = entity_key(AssetKind.ACCOUNT, account_id(owner_name, owner_tax_id), ctx.namespace)
    if not exists(ctx.stub, owner_key):
        raise OwnerNotFoundError(
            f"Owner {owner_name} with tax id {owner_tax_id} does not exist"
        )

    request = PropertyRequest(
        property_id=property_id,
        owner_key=owner_key,
        price=amount,
        status=PropertyStatus.REGISTERED,
        requested_at=ctx.timestamp,
    )
    save(ctx.stub, key, request)
    logger.debug("Property request %s recorded at price %d (tx=%s)", property_id, amount, ctx.tx_id)
    return request


def approve_property(ctx: InvocationContext, property_id: str) -> Property:
    """
    Approve a pending property request, copying owner, price and status.

    Raises:
        AuthorizationError: If the caller is not an approver.
        RequestNotFoundError: If no request exists for property_id.
        AlreadyApprovedError: If the property already exists.
    """
    require_role(ctx, Role.APPROVER, "approve property registration requests")

    req_key = request_key(AssetKind.PROPERTY, property_id, ctx.namespace)
    if not exists(ctx.stub, req_key):
        raise RequestNotFoundError(
            f"No registration request is available for property {property_id}"
        )
    request = load(ctx.stub, req_key, PropertyRequest)

    key = entity_key(AssetKind.PROPERTY, property_id, ctx.namespace)
    if exists(ctx.stub, key):
        raise AlreadyApprovedError(f"Property {property_id} already exists")

    prop = Property.from_request(request, ctx.timestamp)
    save(ctx.stub, key, prop)
    logger.debug("Property %s approved (tx=%s)", property_id, ctx.tx_id)
    return prop
