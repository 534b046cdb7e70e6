"""
properties.py - Property lifecycle and transfer engine

Status state machine:

    REGISTERED <-> ON_SALE

Both transitions are made by the owner through update_status(). There is no
terminal state. A purchase always lands the property back in REGISTERED under
its new owner.

Purchase protocol (purchase):
    1. Check every precondition: role, buyer, property, listing, not already
       the owner, sufficient balance, seller.
    2. Compute the three new records in memory: buyer debited, seller
       credited, property reassigned.
    3. Write seller, then buyer, then property through the same handle.

Nothing is written until every check has passed, and all three writes belong
to the invocation's single transaction. The substrate commits them together
or not at all, so no rollback logic lives here.
"""

from __future__ import annotations
from typing import Union

from .context import InvocationContext
from .core import (
    ExecuteResult,
    PropertyStatus,
    Role,
    InsufficientFundsError,
    NoOpError,
    NotForSaleError,
    NotFoundError,
    NotOwnerError,
    SelfPurchaseError,
)
from .entities import exists, load, save
from .keys import account_key, describe_key, property_key
from .logging import get_logger
from .records import Account, Property
from .roles import require_role

logger = get_logger(__name__)


def _load_property(ctx: InvocationContext, property_id: str) -> Property:
    key = property_key(property_id, ctx.namespace)
    if not exists(ctx.stub, key):
        raise NotFoundError(f"No property exists with id {property_id}")
    return load(ctx.stub, key, Property)


def update_status(
    ctx: InvocationContext,
    property_id: str,
    owner_name: str,
    owner_tax_id: str,
    new_status: Union[PropertyStatus, str],
) -> ExecuteResult:
    """
    Change a property's sale status on behalf of its owner.

    Args:
        ctx: Invocation context
        property_id: Property to update
        owner_name: Name of the account claiming ownership
        owner_tax_id: Tax id of the account claiming ownership
        new_status: PropertyStatus or its value ("registered" / "onSale")

    Raises:
        AuthorizationError: If the caller is not an applicant.
        InvalidStatusError: If new_status is not one of the two statuses.
        NotFoundError: If the owner account or the property does not exist.
        NotOwnerError: If the named account does not own the property.
        NoOpError: If the property already has new_status.
    """
    require_role(ctx, Role.APPLICANT, "update property status")
    status = PropertyStatus.parse(new_status)

    owner_key = account_key(owner_name, owner_tax_id, ctx.namespace)
    if not exists(ctx.stub, owner_key):
        raise NotFoundError(f"Owner {owner_name} with tax id {owner_tax_id} does not exist")

    prop = _load_property(ctx, property_id)
    if prop.owner_key != owner_key:
        raise NotOwnerError(f"Only the owner of property {property_id} can update its status")
    if prop.status is status:
        raise NoOpError(f"Property {property_id} is already {status.value}; no update performed")

    save(ctx.stub, property_key(property_id, ctx.namespace), prop.with_status(status, ctx.timestamp))
    logger.debug(
        "Property %s: %s -> %s (tx=%s)",
        property_id, prop.status.value, status.value, ctx.tx_id,
    )
    return ExecuteResult.APPLIED


def purchase(
    ctx: InvocationContext,
    property_id: str,
    buyer_name: str,
    buyer_tax_id: str,
) -> ExecuteResult:
    """
    Buy a listed property, moving its price from buyer to seller.

    After success:
        buyer.balance  -= price
        seller.balance += price
        property.owner  = buyer, property.status = REGISTERED

    Raises:
        AuthorizationError: If the caller is not an applicant.
        NotFoundError: If the buyer, the property or the seller does not exist.
        NotForSaleError: If the property is not ON_SALE.
        SelfPurchaseError: If the buyer already owns the property.
        InsufficientFundsError: If the buyer's balance is below the price.
    """
    require_role(ctx, Role.APPLICANT, "purchase property")

    buyer_key = account_key(buyer_name, buyer_tax_id, ctx.namespace)
    if not exists(ctx.stub, buyer_key):
        raise NotFoundError(f"Buyer {buyer_name} with tax id {buyer_tax_id} does not exist")
    buyer = load(ctx.stub, buyer_key, Account)

    prop = _load_property(ctx, property_id)
    if not prop.is_on_sale:
        raise NotForSaleError(f"Property {property_id} is currently not listed for sale")
    if prop.owner_key == buyer_key:
        raise SelfPurchaseError(f"{buyer_name} already owns property {property_id}")
    if buyer.balance < prop.price:
        raise InsufficientFundsError(
            f"Balance {buyer.balance} of {buyer_name} is below the price {prop.price} "
            f"of property {property_id}"
        )

    seller_key = prop.owner_key
    seller = load(
        ctx.stub, seller_key, Account,
        message=f"Seller account {describe_key(seller_key)} does not exist",
    )

    price = prop.price
    new_buyer = buyer.debit(price, ctx.timestamp)
    new_seller = seller.credit(price, ctx.timestamp)
    new_prop = prop.transfer_to(buyer_key, ctx.timestamp)

    save(ctx.stub, seller_key, new_seller)
    save(ctx.stub, buyer_key, new_buyer)
    save(ctx.stub, property_key(property_id, ctx.namespace), new_prop)
    logger.debug(
        "Property %s sold by %s to %s for %d (tx=%s)",
        property_id, seller.name, buyer_name, price, ctx.tx_id,
    )
    return ExecuteResult.APPLIED


def view_property(ctx: InvocationContext, property_id: str) -> Property:
    """
    Current state of a property. Read-only and open to every role.

    Raises:
        NotFoundError: If the property does not exist.
    """
    return load(
        ctx.stub, property_key(property_id, ctx.namespace), Property,
        message=f"No property exists with id {property_id}",
    )
