"""
records.py - Registry records and their persisted encoding

Four immutable record types:
1. AccountRequest - a pending account registration
2. Account - an approved account holding a coin balance
3. PropertyRequest - a pending property registration
4. Property - an approved property with owner, price and sale status

Records are frozen. Every state change produces a new instance through
dataclasses.replace(), so a record loaded at the start of an invocation is
never altered behind the caller's back.

Persisted form: a UTF-8 JSON object keyed by field name with sorted keys.
Datetimes are ISO-8601 strings and PropertyStatus is stored as its value.
encode() followed by decode() reproduces identical field values.
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any, Dict, Type, TypeVar, Union, get_type_hints
import json

from .core import (
    PropertyStatus,
    InvalidIdentifierError,
    InvalidPriceError,
    InsufficientFundsError,
    StoreError,
    ValidationError,
)


def _require_text(label: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidIdentifierError(f"{label} cannot be empty")


def _require_str(label: str, value: Any) -> None:
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string, got {type(value).__name__}")


def _require_amount(label: str, value: Any) -> None:
    # bool is an int subclass and is never a valid amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPriceError(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidPriceError(f"{label} cannot be negative, got {value}")


def _require_time(label: str, value: Any) -> None:
    if not isinstance(value, datetime):
        raise ValidationError(f"{label} must be a datetime, got {type(value).__name__}")


# ============================================================================
# ACCOUNTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class AccountRequest:
    """
    A pending request to open an account.

    Attributes:
        name: Account holder's name.
        email: Contact email.
        phone: Contact phone number.
        tax_id: Government tax identifier (with name, the natural key).
        requested_at: When the request was submitted.
    """
    name: str
    email: str
    phone: str
    tax_id: str
    requested_at: datetime

    def __post_init__(self):
        _require_text("name", self.name)
        _require_text("tax_id", self.tax_id)
        _require_str("email", self.email)
        _require_str("phone", self.phone)
        _require_time("requested_at", self.requested_at)


@dataclass(frozen=True, slots=True)
class Account:
    """
    An approved account.

    The balance is a closed-loop integer coin count. It only grows through
    recharge and only moves between accounts through a purchase.
    """
    name: str
    email: str
    phone: str
    tax_id: str
    balance: int
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        _require_text("name", self.name)
        _require_text("tax_id", self.tax_id)
        _require_str("email", self.email)
        _require_str("phone", self.phone)
        _require_amount("balance", self.balance)
        _require_time("created_at", self.created_at)
        _require_time("updated_at", self.updated_at)

    @classmethod
    def from_request(cls, request: AccountRequest, at: datetime) -> Account:
        """Open an account with a zero balance from an approved request."""
        return cls(
            name=request.name,
            email=request.email,
            phone=request.phone,
            tax_id=request.tax_id,
            balance=0,
            created_at=at,
            updated_at=at,
        )

    def credit(self, amount: int, at: datetime) -> Account:
        """Return a copy with amount added to the balance."""
        _require_amount("amount", amount)
        return replace(self, balance=self.balance + amount, updated_at=at)

    def debit(self, amount: int, at: datetime) -> Account:
        """
        Return a copy with amount taken from the balance.

        Raises:
            InsufficientFundsError: If the balance would become negative.
        """
        _require_amount("amount", amount)
        if amount > self.balance:
            raise InsufficientFundsError(
                f"Balance {self.balance} of {self.name} is below {amount}"
            )
        return replace(self, balance=self.balance - amount, updated_at=at)


# ============================================================================
# PROPERTIES
# ============================================================================

@dataclass(frozen=True, slots=True)
class PropertyRequest:
    """
    A pending request to register a property.

    Attributes:
        property_id: Natural key of the property.
        owner_key: Composite key of the owning Account.
        price: Asking price in coins.
        status: Always REGISTERED for a new request.
        requested_at: When the request was submitted.
    """
    property_id: str
    owner_key: str
    price: int
    status: PropertyStatus
    requested_at: datetime

    def __post_init__(self):
        _require_text("property_id", self.property_id)
        _require_text("owner_key", self.owner_key)
        _require_amount("price", self.price)
        object.__setattr__(self, "status", PropertyStatus.parse(self.status))
        _require_time("requested_at", self.requested_at)


@dataclass(frozen=True, slots=True)
class Property:
    """An approved property. Cycles between REGISTERED and ON_SALE forever."""
    property_id: str
    owner_key: str
    price: int
    status: PropertyStatus
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        _require_text("property_id", self.property_id)
        _require_text("owner_key", self.owner_key)
        _require_amount("price", self.price)
        object.__setattr__(self, "status", PropertyStatus.parse(self.status))
        _require_time("created_at", self.created_at)
        _require_time("updated_at", self.updated_at)

    @classmethod
    def from_request(cls, request: PropertyRequest, at: datetime) -> Property:
        """Create the property, copying owner, price and status verbatim."""
        return cls(
            property_id=request.property_id,
            owner_key=request.owner_key,
            price=request.price,
            status=request.status,
            created_at=at,
            updated_at=at,
        )

    @property
    def is_on_sale(self) -> bool:
        return self.status is PropertyStatus.ON_SALE

    def with_status(self, status: PropertyStatus, at: datetime) -> Property:
        return replace(self, status=status, updated_at=at)

    def transfer_to(self, owner_key: str, at: datetime) -> Property:
        """Return a copy owned by owner_key and no longer listed."""
        return replace(
            self,
            owner_key=owner_key,
            status=PropertyStatus.REGISTERED,
            updated_at=at,
        )


# ============================================================================
# ENCODING
# ============================================================================

Record = Union[AccountRequest, Account, PropertyRequest, Property]
R = TypeVar("R", AccountRequest, Account, PropertyRequest, Property)

RECORD_TYPES = (AccountRequest, Account, PropertyRequest, Property)


def to_dict(record: Record) -> Dict[str, Any]:
    """Convert a record to a JSON-compatible dict keyed by field name."""
    data = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, PropertyStatus):
            value = value.value
        data[f.name] = value
    return data


def from_dict(record_type: Type[R], data: Dict[str, Any]) -> R:
    """
    Build a record of record_type from its dict form.

    Raises:
        StoreError: If fields are missing, unexpected, or invalid.
    """
    hints = get_type_hints(record_type)
    names = {f.name for f in fields(record_type)}
    if set(data) != names:
        raise StoreError(
            f"{record_type.__name__} fields mismatch: "
            f"missing {sorted(names - set(data))}, unexpected {sorted(set(data) - names)}"
        )
    kwargs = {}
    try:
        for name in names:
            value = data[name]
            if hints[name] is datetime:
                value = datetime.fromisoformat(value)
            kwargs[name] = value
        return record_type(**kwargs)
    except (TypeError, ValueError, ValidationError) as e:
        raise StoreError(f"Invalid {record_type.__name__} record: {e}") from e


def encode(record: Record) -> bytes:
    """Serialize a record to its persisted bytes."""
    if not isinstance(record, RECORD_TYPES):
        raise TypeError(f"Cannot encode {type(record).__name__}")
    return json.dumps(to_dict(record), sort_keys=True, separators=(",", ":")).encode("utf-8")


def decode(record_type: Type[R], data: bytes) -> R:
    """
    Deserialize persisted bytes into a record of record_type.

    Raises:
        StoreError: If the bytes are not a valid record of that type.
    """
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise StoreError(f"Corrupt {record_type.__name__} record: {e}") from e
    if not isinstance(payload, dict):
        raise StoreError(f"Corrupt {record_type.__name__} record: not an object")
    return from_dict(record_type, payload)
