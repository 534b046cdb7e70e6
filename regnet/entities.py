"""
entities.py - Typed access to records on the ledger substrate

Thin helpers over a KeyValueStore handle. They do no locking of their own:
isolation and atomicity come entirely from the transaction the handle
belongs to.
"""

from __future__ import annotations
from typing import Optional, Type

from .core import KeyValueStore, NotFoundError
from .keys import Key, describe_key
from .records import R, Record, decode, encode


def exists(stub: KeyValueStore, key: Key) -> bool:
    """True iff a non-empty value is stored under key."""
    value = stub.get(key)
    return value is not None and len(value) != 0


def load(stub: KeyValueStore, key: Key, record_type: Type[R], message: Optional[str] = None) -> R:
    """
    Load and decode the record stored under key.

    Args:
        stub: Transactional handle
        key: Composite key of the record
        record_type: Record class to decode into
        message: Error message used when the record is absent

    Raises:
        NotFoundError: If nothing is stored under key.
        StoreError: If the stored bytes are not a valid record_type.
    """
    value = stub.get(key)
    if not value:
        raise NotFoundError(message or f"No {record_type.__name__} exists at {describe_key(key)}")
    return decode(record_type, value)


def save(stub: KeyValueStore, key: Key, record: Record) -> None:
    """Encode record and store it under key, overwriting any prior value."""
    stub.put(key, encode(record))
