"""
roles.py - Role guard

Maps the caller's organizational claim to a Role and enforces which role may
trigger each mutating operation. View operations do not call the guard.
"""

from __future__ import annotations

from .context import InvocationContext
from .core import AuthorizationError, Role


def caller_role(ctx: InvocationContext) -> Role:
    """
    Resolve the caller's role from the invocation context.

    Raises:
        AuthorizationError: If the claim belongs to no known organization.
    """
    role = ctx.config.role_for(ctx.msp_id)
    if role is None:
        raise AuthorizationError(f"Unrecognised organization {ctx.msp_id!r}")
    return role


def require_role(ctx: InvocationContext, expected: Role, action: str = "perform this operation") -> None:
    """
    Fail unless the caller holds the expected role.

    Args:
        ctx: Invocation context
        expected: Role the operation requires
        action: Description used in the error message

    Raises:
        AuthorizationError: If the caller's role differs from expected.
    """
    role = caller_role(ctx)
    if role is not expected:
        raise AuthorizationError(
            f"Only members of the {expected.value} organization can {action}"
        )
