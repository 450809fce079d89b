"""Tests for access token issuance and revocation"""

from datetime import timedelta

import pytest

from opauth.domain.enums import OperationKind, TokenStatus, RevokeReason
from opauth.domain.errors import (
    InvalidTTLError, UnknownOperationKindError, ConditionalRequirementNotMetError, InvalidFieldValueError,
    ActiveTokenExistsError, NotFoundError, TokenOwnershipError,
    TokenAlreadyConsumedError, TokenRevokedError,
)
from opauth.domain.models import OperationRequest
from opauth.engine.token_issuer import TokenIssuer
from tests.conftest import START, VALID_DETAILS, InMemoryTokenRepository


class TestIssue:
    """TokenIssuer.issue"""

    def test_issue_default_ttl(self, issuer, token_repo, hr_manager):
        token = issuer.issue("status_change", "EMP-1", {"newStatus": "on_leave"}, issued_by=hr_manager)

        assert token.status == TokenStatus.ISSUED
        assert token.operation_kind == OperationKind.STATUS_CHANGE
        assert token.target_id == "EMP-1"
        assert token.details == {"newStatus": "on_leave"}
        assert token.issued_at == START
        assert token.expires_at == START + timedelta(seconds=300)
        assert token.issued_by.user_id == hr_manager.user_id
        assert token.token_id.startswith("TOK-")
        # Durably recorded before being returned
        assert token_repo.get_token(token.token_id) == token

    def test_issue_custom_ttl(self, issuer):
        token = issuer.issue("stock_out", "ITEM-1", {"quantity": 2}, ttl_seconds=30)
        assert token.expires_at == START + timedelta(seconds=30)

    @pytest.mark.parametrize("ttl", [0, -60])
    def test_non_positive_ttl(self, issuer, ttl):
        with pytest.raises(InvalidTTLError):
            issuer.issue("stock_out", "ITEM-1", {"quantity": 2}, ttl_seconds=ttl)

    def test_non_positive_default_ttl(self, registry, token_repo):
        with pytest.raises(InvalidTTLError):
            TokenIssuer(registry=registry, repo=token_repo, default_ttl_seconds=0)

    def test_unknown_kind(self, issuer):
        with pytest.raises(UnknownOperationKindError):
            issuer.issue("stock_movement", "ITEM-1", {"type": "out"})

    def test_token_ids_are_unique(self, issuer):
        ids = {issuer.issue("stock_in", f"ITEM-{i}").token_id for i in range(50)}
        assert len(ids) == 50


class TestIssuanceRequirements:
    """Details each kind must carry at issuance"""

    @pytest.mark.parametrize("kind", sorted(VALID_DETAILS))
    def test_valid_details_accepted(self, issuer, kind):
        token = issuer.issue(kind, "TARGET-1", VALID_DETAILS[kind])
        assert token.operation_kind.value == kind

    @pytest.mark.parametrize("kind,failure_path", [
        ("status_change", "newStatus"),
        ("asset_assignment", "assetId"),
        ("leave_approval", "leaveRequestId"),
        ("stock_out", "quantity"),
        ("stock_transfer", "destination"),
    ])
    def test_missing_details(self, issuer, kind, failure_path):
        with pytest.raises(ConditionalRequirementNotMetError) as exc_info:
            issuer.issue(kind, "TARGET-1", {})
        assert exc_info.value.field == failure_path

    @pytest.mark.parametrize("new_status", ["terminated", "retired", "deceased"])
    def test_terminal_status_needs_reason(self, issuer, new_status):
        with pytest.raises(ConditionalRequirementNotMetError) as exc_info:
            issuer.issue("status_change", "EMP-1", {"newStatus": new_status})
        assert exc_info.value.field == "reason"

        token = issuer.issue("status_change", "EMP-1", {"newStatus": new_status, "reason": "Contract ended"})
        assert token.details["reason"] == "Contract ended"


class TestIssuanceFieldTypes:
    """Details must be values the operation itself would accept"""

    @pytest.mark.parametrize("quantity", [-3, 0, "5", 2.5, True])
    def test_unusable_quantity_rejected(self, issuer, quantity):
        with pytest.raises(InvalidFieldValueError) as exc_info:
            issuer.issue("stock_out", "ITEM-9", {"quantity": quantity})
        assert exc_info.value.field == "quantity"

    def test_rejected_token_does_not_hold_target(self, issuer):
        with pytest.raises(InvalidFieldValueError):
            issuer.issue("stock_out", "ITEM-9", {"quantity": -3})

        token = issuer.issue("stock_out", "ITEM-9", {"quantity": 3})
        assert issuer.get_active("ITEM-9").token_id == token.token_id

    def test_unknown_status_rejected(self, issuer):
        with pytest.raises(InvalidFieldValueError) as exc_info:
            issuer.issue("status_change", "EMP-1", {"newStatus": "promoted"})
        assert exc_info.value.field == "newStatus"

    def test_unknown_detail_rejected(self, issuer):
        with pytest.raises(InvalidFieldValueError) as exc_info:
            issuer.issue("asset_assignment", "EMP-1", {"assetId": "AST-1", "colour": "red"})
        assert exc_info.value.field == "colour"

    def test_transfer_to_same_location_rejected(self, issuer):
        with pytest.raises(InvalidFieldValueError) as exc_info:
            issuer.issue("stock_transfer", "ITEM-9", {"quantity": 5, "source": "WH-A", "destination": "WH-A"})
        assert exc_info.value.field == "destination"

    def test_details_stored_normalized(self, issuer, token_repo):
        token = issuer.issue("status_change", "EMP-1", {"newStatus": "suspended", "reason": "Audit", "notes": None})

        assert token.details == {"newStatus": "suspended", "reason": "Audit"}
        assert token_repo.get_token(token.token_id).details == token.details

    def test_normalized_details_match_request(self, issuer, movement_validator):
        token = issuer.issue("stock_transfer", "ITEM-9", {"quantity": 5, "source": "WH-A", "destination": "WH-B"})

        decision = movement_validator.authorize(OperationRequest(
            kind="stock_movement",
            target_id="ITEM-9",
            fields={"type": "transfer", "quantity": 5, "source": "WH-A", "destination": "WH-B"},
            token_ref=token.token_id,
        ))
        assert decision.consumed_token_id == token.token_id


class TestSingleActiveToken:
    """One live token per target"""

    def test_second_token_rejected(self, issuer):
        issuer.issue("stock_out", "ITEM-1", {"quantity": 1})
        with pytest.raises(ActiveTokenExistsError):
            issuer.issue("stock_transfer", "ITEM-1", {"destination": "WH-B"})

    def test_other_targets_unaffected(self, issuer):
        issuer.issue("stock_out", "ITEM-1", {"quantity": 1})
        issuer.issue("stock_out", "ITEM-2", {"quantity": 1})

    def test_expired_token_frees_target(self, issuer, token_repo, clock):
        first = issuer.issue("stock_out", "ITEM-1", {"quantity": 1})
        clock.advance(301)

        second = issuer.issue("stock_out", "ITEM-1", {"quantity": 1})

        stale = token_repo.get_token(first.token_id)
        assert stale.status == TokenStatus.REVOKED
        assert stale.revoke_reason == RevokeReason.EXPIRED
        assert issuer.get_active("ITEM-1").token_id == second.token_id

    def test_disabled(self, registry, clock):
        repo = InMemoryTokenRepository(single_active_per_target=False)
        issuer = TokenIssuer(registry, repo, default_ttl_seconds=300, single_active_per_target=False, clock=clock)

        issuer.issue("stock_in", "ITEM-1")
        issuer.issue("stock_in", "ITEM-1")


class TestRevoke:
    """TokenIssuer.revoke"""

    def test_issuer_can_revoke(self, issuer, hr_manager, clock):
        token = issuer.issue("leave_approval", "EMP-1", {"leaveRequestId": "LV-1"}, issued_by=hr_manager)
        clock.advance(10)

        assert token.is_usable
        revoked = issuer.revoke(token.token_id, hr_manager)

        assert revoked.status == TokenStatus.REVOKED
        assert revoked.revoke_reason == RevokeReason.CANCELLED
        assert revoked.revoked_at == START + timedelta(seconds=10)
        assert not revoked.is_usable
        assert issuer.get_active("EMP-1") is None

    def test_other_user_cannot_revoke(self, issuer, hr_manager, employee):
        token = issuer.issue("leave_approval", "EMP-1", {"leaveRequestId": "LV-1"}, issued_by=hr_manager)
        with pytest.raises(TokenOwnershipError):
            issuer.revoke(token.token_id, employee, admin_roles=["admin"])

    def test_admin_can_revoke(self, issuer, hr_manager, admin):
        token = issuer.issue("leave_approval", "EMP-1", {"leaveRequestId": "LV-1"}, issued_by=hr_manager)
        revoked = issuer.revoke(token.token_id, admin, admin_roles=["admin"])
        assert revoked.status == TokenStatus.REVOKED

    def test_unknown_token(self, issuer, admin):
        with pytest.raises(NotFoundError):
            issuer.revoke("TOK-missing", admin, admin_roles=["admin"])

    def test_consumed_token(self, issuer, token_repo, stock_manager):
        token = issuer.issue("stock_out", "ITEM-1", {"quantity": 1}, issued_by=stock_manager)
        token_repo.consume_token(token.token_id, START)

        with pytest.raises(TokenAlreadyConsumedError):
            issuer.revoke(token.token_id, stock_manager)

    def test_revoke_twice(self, issuer, stock_manager):
        token = issuer.issue("stock_out", "ITEM-1", {"quantity": 1}, issued_by=stock_manager)
        issuer.revoke(token.token_id, stock_manager)

        with pytest.raises(TokenRevokedError):
            issuer.revoke(token.token_id, stock_manager)


class TestSweep:

    def test_sweep_revokes_only_expired(self, issuer, clock):
        issuer.issue("stock_out", "ITEM-1", {"quantity": 1}, ttl_seconds=60)
        issuer.issue("stock_out", "ITEM-2", {"quantity": 1}, ttl_seconds=600)
        clock.advance(120)

        assert issuer.sweep_expired() == 1
        assert issuer.get_active("ITEM-1") is None
        assert issuer.get_active("ITEM-2") is not None
