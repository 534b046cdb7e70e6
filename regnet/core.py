"""
Core types for the property registration network.

This module provides the foundational definitions shared by every other module:
1. Constants: default key namespace, recharge tiers, MSP identifiers
2. Enums: Role, PropertyStatus, AssetKind, ExecuteResult
3. Protocols: KeyValueStore, the interface of the ledger substrate
4. Exceptions: RegistryError and the domain-specific error families

Nothing in this module touches state. Operations receive a transactional
handle that satisfies KeyValueStore and never see the store behind it.
"""

from __future__ import annotations
from enum import Enum
from typing import Dict, Optional, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Prefix shared by every composite key object type.
DEFAULT_NAMESPACE = "org.property-registration-network.regnet"

# Organizational claims presented by the two participating organizations.
APPLICANT_MSP_ID = "usersMSP"
APPROVER_MSP_ID = "registrarMSP"

# Separator between the components of an account's natural identifier.
NATURAL_ID_SEPARATOR = "-"

# Escapes a literal separator (or itself) inside an account id component.
NATURAL_ID_ESCAPE = "\\"

# Delimiter used inside composite keys. Never allowed inside a component.
COMPOSITE_KEY_DELIMITER = "\x00"

# Closed recharge table: bank transaction code -> coins credited.
RECHARGE_TIERS: Dict[str, int] = {
    "upg100": 100,
    "upg500": 500,
    "upg1000": 1000,
}


# ============================================================================
# ENUMS
# ============================================================================

class Role(Enum):
    """
    Organizational role of the caller.

    APPLICANT: members of the users organization. May submit registration
               requests, recharge accounts, list and purchase property.
    APPROVER:  members of the registrar organization. May approve requests.
    """
    APPLICANT = "applicant"
    APPROVER = "approver"


class PropertyStatus(Enum):
    """
    Sale status of a property.

    REGISTERED: owned and not listed.
    ON_SALE:    listed and purchasable by any other account holder.
    """
    REGISTERED = "registered"
    ON_SALE = "onSale"

    @classmethod
    def parse(cls, value) -> PropertyStatus:
        """
        Coerce an enum member or its string value into a PropertyStatus.

        Raises:
            InvalidStatusError: If the value is not one of the two statuses.
        """
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        raise InvalidStatusError(
            f"Invalid status {value!r}. Status should be either "
            f"{cls.REGISTERED.value!r} or {cls.ON_SALE.value!r}"
        )


class AssetKind(Enum):
    """The two entity families tracked by the registry."""
    ACCOUNT = "user"
    PROPERTY = "property"


class ExecuteResult(Enum):
    """
    Outcome of an invocation.

    APPLIED: The operation succeeded and its writes were committed.
    ALREADY_APPLIED: The transaction id was committed before; nothing was run.
    REJECTED: The operation failed; nothing was committed.
    """
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    REJECTED = "rejected"


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class KeyValueStore(Protocol):
    """
    Interface of the ledger substrate as seen by one invocation.

    Implementations are transactional handles: every put made through the
    handle becomes visible to other invocations together with all the others,
    or not at all.
    """

    def get(self, key: str) -> Optional[bytes]:
        """Return the bytes stored under key, or None if absent."""
        ...

    def put(self, key: str, value: bytes) -> None:
        """Store value under key, overwriting any prior value."""
        ...


# ============================================================================
# EXCEPTIONS
# ============================================================================

class RegistryError(Exception):
    """Base exception for all registry errors."""

    @property
    def kind(self) -> str:
        """Name of the error kind reported to callers."""
        return type(self).__name__


class AuthorizationError(RegistryError):
    """Raised when the caller's role does not permit the operation."""
    pass


class ConfigurationError(RegistryError):
    """Raised when registry configuration is invalid."""
    pass


# --- Validation -------------------------------------------------------------

class ValidationError(RegistryError):
    """Raised when input is malformed or semantically invalid."""
    pass


class InvalidCodeError(ValidationError):
    """Raised when a recharge code is not one of the known tiers."""
    pass


class InvalidStatusError(ValidationError):
    """Raised when a property status is not one of the enumerated values."""
    pass


class NoOpError(ValidationError):
    """Raised when a status update would leave the status unchanged."""
    pass


class InvalidPriceError(ValidationError):
    """Raised when a price or balance is not a non-negative integer."""
    pass


class InvalidIdentifierError(ValidationError):
    """Raised when a natural identifier cannot form a collision-free key."""
    pass


# --- Not found --------------------------------------------------------------

class NotFoundError(RegistryError):
    """Raised when a referenced record does not exist."""
    pass


class RequestNotFoundError(NotFoundError):
    """Raised when approving a registration that was never requested."""
    pass


class OwnerNotFoundError(NotFoundError):
    """Raised when a property request names an owner with no account."""
    pass


# --- Conflict ---------------------------------------------------------------

class ConflictError(RegistryError):
    """Raised when the operation collides with existing state."""
    pass


class DuplicateRequestError(ConflictError):
    """Raised when a registration request already exists for the key."""
    pass


class AlreadyApprovedError(ConflictError):
    """Raised when the approved entity already exists."""
    pass


class SelfPurchaseError(ConflictError):
    """Raised when the buyer already owns the property."""
    pass


# --- Business rules ---------------------------------------------------------

class BusinessRuleError(RegistryError):
    """Raised when a well-formed request violates a marketplace rule."""
    pass


class NotForSaleError(BusinessRuleError):
    """Raised when purchasing a property that is not listed."""
    pass


class InsufficientFundsError(BusinessRuleError):
    """Raised when the buyer's balance is below the property price."""
    pass


class NotOwnerError(BusinessRuleError):
    """Raised when someone other than the owner changes a property's status."""
    pass


# --- Substrate --------------------------------------------------------------

class StoreError(RegistryError):
    """Base exception for ledger substrate failures."""
    pass


class TransactionConflict(StoreError):
    """Raised at commit when a key read by the transaction changed meanwhile."""
    pass


class TransactionClosedError(StoreError):
    """Raised when using a transaction that was already committed or discarded."""
    pass


class DuplicateTransactionError(StoreError):
    """Raised when committing a transaction id that was already committed."""
    pass
