"""
test_roles.py - Unit tests for the role guard
"""

import pytest

from regnet import (
    APPLICANT_MSP_ID, APPROVER_MSP_ID, AuthorizationError,
    InvocationContext, RegistryConfig, Role, caller_role, require_role,
)


class TestCallerRole:

    def test_applicant(self, make_ctx):
        assert caller_role(make_ctx(APPLICANT_MSP_ID)) is Role.APPLICANT

    def test_approver(self, make_ctx):
        assert caller_role(make_ctx(APPROVER_MSP_ID)) is Role.APPROVER

    @pytest.mark.parametrize("msp_id", ["othersMSP", "", None, "usersmsp"])
    def test_unrecognised_claim(self, make_ctx, msp_id):
        with pytest.raises(AuthorizationError):
            caller_role(make_ctx(msp_id))

    def test_custom_mapping(self, store):
        config = RegistryConfig(applicant_msp_id="BuyersMSP", approver_msp_id="LandOfficeMSP")
        ctx = InvocationContext.for_transaction(store.begin(), "LandOfficeMSP", config)
        assert caller_role(ctx) is Role.APPROVER
        ctx = InvocationContext.for_transaction(store.begin(), APPLICANT_MSP_ID, config)
        with pytest.raises(AuthorizationError):
            caller_role(ctx)


class TestRequireRole:

    def test_matching_role_passes(self, applicant_ctx, approver_ctx):
        require_role(applicant_ctx, Role.APPLICANT)
        require_role(approver_ctx, Role.APPROVER)

    def test_wrong_role_rejected(self, applicant_ctx):
        with pytest.raises(AuthorizationError, match="approver organization can approve things"):
            require_role(applicant_ctx, Role.APPROVER, "approve things")
