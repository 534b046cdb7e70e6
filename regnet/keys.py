"""
keys.py - Composite key scheme

Every record lives under a composite key built from an object type and the
record's natural identifier:

    "\\x00" + object_type + "\\x00" + natural_id + "\\x00"

Object types are namespaced so that a registration request and the entity it
turns into never share a key, even though both are built from the same
natural identifier:

    <ns>.request.user        account registration requests
    <ns>.user                accounts
    <ns>.request.property    property registration requests
    <ns>.property            properties

All functions are pure: identical inputs always yield identical keys.
"""

from __future__ import annotations
from typing import List, Tuple

from .core import (
    AssetKind,
    COMPOSITE_KEY_DELIMITER,
    DEFAULT_NAMESPACE,
    NATURAL_ID_ESCAPE,
    NATURAL_ID_SEPARATOR,
    InvalidIdentifierError,
)


# Type alias for a composite key.
Key = str


def _check_component(label: str, value: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidIdentifierError(f"{label} cannot be empty")
    if COMPOSITE_KEY_DELIMITER in value:
        raise InvalidIdentifierError(f"{label} cannot contain a NUL character")


def create_composite_key(object_type: str, attributes: List[str]) -> Key:
    """
    Build a composite key from an object type and its attributes.

    Raises:
        InvalidIdentifierError: If any component is empty or contains the delimiter.
    """
    _check_component("object type", object_type)
    for attribute in attributes:
        _check_component("key attribute", attribute)
    d = COMPOSITE_KEY_DELIMITER
    return d + object_type + d + "".join(a + d for a in attributes)


def split_composite_key(key: Key) -> Tuple[str, List[str]]:
    """
    Split a composite key back into its object type and attributes.

    Raises:
        InvalidIdentifierError: If key is not a composite key.
    """
    d = COMPOSITE_KEY_DELIMITER
    if not key.startswith(d) or not key.endswith(d) or len(key) < 3:
        raise InvalidIdentifierError(f"Not a composite key: {key!r}")
    parts = key[1:-1].split(d)
    return parts[0], parts[1:]


def _escape(value: str) -> str:
    value = value.replace(NATURAL_ID_ESCAPE, NATURAL_ID_ESCAPE * 2)
    return value.replace(NATURAL_ID_SEPARATOR, NATURAL_ID_ESCAPE + NATURAL_ID_SEPARATOR)


def account_id(name: str, tax_id: str) -> str:
    """
    Natural identifier of an account: name and tax id joined by a separator.

    Separators and escape characters inside either component are escaped
    first, so the only unescaped separator is the joining one:

        ("alice", "1001")        -> "alice-1001"
        ("a-b", "c")             -> "a\\-b-c"
        ("a", "b-c")             -> "a-b\\-c"

    Raises:
        InvalidIdentifierError: If either component is empty or contains
            the composite key delimiter.
    """
    _check_component("name", name)
    _check_component("tax id", tax_id)
    return f"{_escape(name)}{NATURAL_ID_SEPARATOR}{_escape(tax_id)}"


def request_object_type(kind: AssetKind, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}.request.{kind.value}"


def entity_object_type(kind: AssetKind, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}.{kind.value}"


def request_key(kind: AssetKind, natural_id: str, namespace: str = DEFAULT_NAMESPACE) -> Key:
    """Key of the pending registration request for (kind, natural_id)."""
    return create_composite_key(request_object_type(kind, namespace), [natural_id])


def entity_key(kind: AssetKind, natural_id: str, namespace: str = DEFAULT_NAMESPACE) -> Key:
    """Key of the approved entity for (kind, natural_id)."""
    return create_composite_key(entity_object_type(kind, namespace), [natural_id])


def account_key(name: str, tax_id: str, namespace: str = DEFAULT_NAMESPACE) -> Key:
    return entity_key(AssetKind.ACCOUNT, account_id(name, tax_id), namespace)


def account_request_key(name: str, tax_id: str, namespace: str = DEFAULT_NAMESPACE) -> Key:
    return request_key(AssetKind.ACCOUNT, account_id(name, tax_id), namespace)


def property_key(property_id: str, namespace: str = DEFAULT_NAMESPACE) -> Key:
    return entity_key(AssetKind.PROPERTY, property_id, namespace)


def property_request_key(property_id: str, namespace: str = DEFAULT_NAMESPACE) -> Key:
    return request_key(AssetKind.PROPERTY, property_id, namespace)


def describe_key(key: Key) -> str:
    """Printable form of a composite key for messages and logs."""
    try:
        object_type, attributes = split_composite_key(key)
    except InvalidIdentifierError:
        return repr(key)
    return f"{object_type}[{', '.join(attributes)}]"
