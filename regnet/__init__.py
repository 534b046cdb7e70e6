"""
regnet - Property Registration Network

A registry of accounts and properties on a transactional key-value ledger:
two-phase registration (request, then approve), coin balances, property
listing and an atomic purchase that moves ownership one way and coins the
other.

Usage:
    from regnet import Registry, APPLICANT_MSP_ID, APPROVER_MSP_ID

    registry = Registry()
    registry.submit(APPLICANT_MSP_ID, "request_account", "alice", "alice@x.io", "555-0100", "1001")
    registry.submit(APPROVER_MSP_ID, "approve_account", "alice", "1001")
    registry.submit(APPLICANT_MSP_ID, "recharge", "alice", "1001", "upg1000")

    registry.submit(APPLICANT_MSP_ID, "request_property", "alice", "1001", "PROP-001", 300)
    registry.submit(APPROVER_MSP_ID, "approve_property", "PROP-001")
    registry.submit(APPLICANT_MSP_ID, "update_status", "PROP-001", "alice", "1001", "onSale")

    result = registry.evaluate(APPLICANT_MSP_ID, "view_property", "PROP-001")
"""

# Core types
from .core import (
    KeyValueStore,
    Role,
    PropertyStatus,
    AssetKind,
    ExecuteResult,
    DEFAULT_NAMESPACE,
    APPLICANT_MSP_ID,
    APPROVER_MSP_ID,
    RECHARGE_TIERS,
    # Exceptions
    RegistryError,
    AuthorizationError,
    ConfigurationError,
    ValidationError,
    InvalidCodeError,
    InvalidStatusError,
    NoOpError,
    InvalidPriceError,
    InvalidIdentifierError,
    NotFoundError,
    RequestNotFoundError,
    OwnerNotFoundError,
    ConflictError,
    DuplicateRequestError,
    AlreadyApprovedError,
    SelfPurchaseError,
    BusinessRuleError,
    NotForSaleError,
    InsufficientFundsError,
    NotOwnerError,
    StoreError,
    TransactionConflict,
    TransactionClosedError,
    DuplicateTransactionError,
)

# Configuration
from .config import RegistryConfig, DEFAULT_CONFIG

# Records
from .records import AccountRequest, Account, PropertyRequest, Property, encode, decode

# Keys
from .keys import (
    Key,
    account_id,
    request_key,
    entity_key,
    account_key,
    account_request_key,
    property_key,
    property_request_key,
    create_composite_key,
    split_composite_key,
)

# Substrate
from .store import InMemoryLedgerStore, LedgerTransaction, CommittedTransaction
from .context import InvocationContext

# Role guard and entity adapter
from .roles import caller_role, require_role
from .entities import exists, load, save

# Operations
from .registration import request_account, approve_account, request_property, approve_property
from .accounts import recharge, view_account
from .properties import update_status, purchase, view_property

# Gateway
from .registry import Registry, InvocationResult, Operation, OPERATIONS

__all__ = [
    # Core
    'KeyValueStore', 'Role', 'PropertyStatus', 'AssetKind', 'ExecuteResult',
    'DEFAULT_NAMESPACE', 'APPLICANT_MSP_ID', 'APPROVER_MSP_ID', 'RECHARGE_TIERS',
    # Exceptions
    'RegistryError', 'AuthorizationError', 'ConfigurationError',
    'ValidationError', 'InvalidCodeError', 'InvalidStatusError', 'NoOpError',
    'InvalidPriceError', 'InvalidIdentifierError',
    'NotFoundError', 'RequestNotFoundError', 'OwnerNotFoundError',
    'ConflictError', 'DuplicateRequestError', 'AlreadyApprovedError', 'SelfPurchaseError',
    'BusinessRuleError', 'NotForSaleError', 'InsufficientFundsError', 'NotOwnerError',
    'StoreError', 'TransactionConflict', 'TransactionClosedError', 'DuplicateTransactionError',
    # Configuration
    'RegistryConfig', 'DEFAULT_CONFIG',
    # Records
    'AccountRequest', 'Account', 'PropertyRequest', 'Property', 'encode', 'decode',
    # Keys
    'Key', 'account_id', 'request_key', 'entity_key', 'account_key', 'account_request_key',
    'property_key', 'property_request_key', 'create_composite_key', 'split_composite_key',
    # Substrate
    'InMemoryLedgerStore', 'LedgerTransaction', 'CommittedTransaction', 'InvocationContext',
    # Guard and adapter
    'caller_role', 'require_role', 'exists', 'load', 'save',
    # Operations
    'request_account', 'approve_account', 'request_property', 'approve_property',
    'recharge', 'view_account', 'update_status', 'purchase', 'view_property',
    # Gateway
    'Registry', 'InvocationResult', 'Operation', 'OPERATIONS',
]

__version__ = '1.0.0'
