"""Configuration management for regnet."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .core import (
    APPLICANT_MSP_ID,
    APPROVER_MSP_ID,
    DEFAULT_NAMESPACE,
    COMPOSITE_KEY_DELIMITER,
    ConfigurationError,
    Role,
)


@dataclass(frozen=True)
class RegistryConfig:
    """Registry configuration.

    Attributes:
        namespace: Prefix of every composite key object type.
        applicant_msp_id: Claim presented by members of the users organization.
        approver_msp_id: Claim presented by members of the registrar organization.
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "standard" or "json".
    """

    namespace: str = DEFAULT_NAMESPACE
    applicant_msp_id: str = APPLICANT_MSP_ID
    approver_msp_id: str = APPROVER_MSP_ID
    log_level: str = "INFO"
    log_format: str = "standard"

    def __post_init__(self):
        if not self.namespace or not self.namespace.strip():
            raise ConfigurationError("namespace cannot be empty")
        if COMPOSITE_KEY_DELIMITER in self.namespace:
            raise ConfigurationError("namespace cannot contain the composite key delimiter")
        if not self.applicant_msp_id or not self.applicant_msp_id.strip():
            raise ConfigurationError("applicant_msp_id cannot be empty")
        if not self.approver_msp_id or not self.approver_msp_id.strip():
            raise ConfigurationError("approver_msp_id cannot be empty")
        if self.applicant_msp_id == self.approver_msp_id:
            raise ConfigurationError(
                "applicant and approver organizations must use different MSP ids"
            )
        if self.log_format not in ("standard", "json"):
            raise ConfigurationError(f"Unknown log format: {self.log_format!r}")

    def role_for(self, msp_id: Optional[str]) -> Optional[Role]:
        """Map an MSP id claim to a Role, or None if it is not recognised."""
        if msp_id == self.applicant_msp_id:
            return Role.APPLICANT
        if msp_id == self.approver_msp_id:
            return Role.APPROVER
        return None

    @classmethod
    def from_env(cls) -> "RegistryConfig":
        """Create config from environment variables."""
        import os

        return cls(
            namespace=os.getenv("REGNET_NAMESPACE", DEFAULT_NAMESPACE),
            applicant_msp_id=os.getenv("REGNET_APPLICANT_MSP", APPLICANT_MSP_ID),
            approver_msp_id=os.getenv("REGNET_APPROVER_MSP", APPROVER_MSP_ID),
            log_level=os.getenv("REGNET_LOG_LEVEL", "INFO"),
            log_format=os.getenv("REGNET_LOG_FORMAT", "standard"),
        )


DEFAULT_CONFIG = RegistryConfig()
