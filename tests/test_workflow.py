"""
Tests for offer status transitions.

Covers:
- contract conversion on leaser approval (one log row, one contract)
- terminal statuses
- information request round trip
- log-first write ordering and its failure modes
- status display metadata
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from leazr.models import Contract
from leazr.models import OfferWorkflowStatus as S
from leazr.services.contracts import get_contract_for_offer, list_contracts
from leazr.services.errors import (
    InvalidTransitionError,
    OfferNotFoundError,
    WorkflowLogError,
)
from leazr.services.workflow import (
    STATUS_METADATA,
    TRANSITIONS,
    can_transition,
    get_workflow_logs,
    process_info_response,
    request_info,
    status_metadata,
    update_offer_status,
)


async def contract_without_client(db, offer, leaser_name, leaser_logo, user_id):
    contract = Contract(
        offer_id=offer.id,
        client_name=None,
        leaser_name=leaser_name,
        monthly_payment=offer.monthly_payment,
        user_id=user_id,
    )
    db.add(contract)
    await db.flush()
    return contract


# ── transition table ──────────────────────────────────────


class TestTransitionTable:
    def test_every_status_has_an_entry(self):
        assert set(TRANSITIONS) == set(S)
        assert set(STATUS_METADATA) == set(S)

    @pytest.mark.parametrize(
        "current,requested,allowed",
        [
            (S.DRAFT, S.SENT, True),
            (S.SENT, S.DRAFT, True),
            (S.DRAFT, S.LEASER_APPROVED, True),
            (S.LEASER_APPROVED, S.FINANCED, True),
            (S.LEASER_APPROVED, S.DRAFT, False),
            (S.DRAFT, S.DRAFT, False),
            (S.FINANCED, S.DRAFT, False),
            (S.REJECTED, S.SENT, False),
            (S.INFO_REQUESTED, S.SENT, False),
        ],
    )
    def test_can_transition(self, current, requested, allowed):
        assert can_transition(current, requested) is allowed


# ── transitions ───────────────────────────────────────────


class TestUpdateOfferStatus:
    @pytest.mark.asyncio
    async def test_simple_transition_writes_one_log(self, db_session, offer, admin_user):
        result = await update_offer_status(db_session, offer.id, "sent", admin_user.id, "Sent to client")

        assert result.previous_status == S.DRAFT
        assert result.new_status == S.SENT
        assert result.contract_id is None

        await db_session.refresh(offer)
        assert offer.workflow_status == S.SENT

        logs = await get_workflow_logs(db_session, offer.id)
        assert len(logs) == 1
        assert logs[0].previous_status == "draft"
        assert logs[0].new_status == "sent"
        assert logs[0].reason == "Sent to client"

    @pytest.mark.asyncio
    async def test_leaser_approval_creates_contract(self, db_session, offer, admin_user):
        result = await update_offer_status(db_session, offer.id, S.LEASER_APPROVED, admin_user.id)

        await db_session.refresh(offer)
        assert offer.workflow_status == S.LEASER_APPROVED
        assert offer.converted_to_contract is True

        logs = await get_workflow_logs(db_session, offer.id)
        assert len(logs) == 1
        assert (logs[0].previous_status, logs[0].new_status) == ("draft", "leaser_approved")

        contract = await get_contract_for_offer(db_session, offer.id)
        assert contract is not None
        assert contract.id == result.contract_id
        assert contract.leaser_name == "Grenke"
        assert contract.monthly_payment == Decimal("66.00")
        assert contract.equipment_description == "2 x Laptop"

    @pytest.mark.asyncio
    async def test_financing_a_converted_offer_keeps_one_contract(self, db_session, offer, admin_user):
        await update_offer_status(db_session, offer.id, S.LEASER_APPROVED, admin_user.id)
        result = await update_offer_status(db_session, offer.id, S.FINANCED, admin_user.id)

        assert result.contract_id is None
        assert len(await list_contracts(db_session)) == 1
        assert len(await get_workflow_logs(db_session, offer.id)) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("terminal", [S.FINANCED, S.REJECTED])
    async def test_terminal_statuses_cannot_be_left(self, db_session, offer_factory, admin_user, terminal):
        offer = await offer_factory(status=terminal)

        with pytest.raises(InvalidTransitionError):
            await update_offer_status(db_session, offer.id, S.DRAFT, admin_user.id)

        assert await get_workflow_logs(db_session, offer.id) == []

    @pytest.mark.asyncio
    async def test_unknown_offer(self, db_session, admin_user):
        with pytest.raises(OfferNotFoundError):
            await update_offer_status(db_session, 404, S.SENT, admin_user.id)

    @pytest.mark.asyncio
    async def test_unknown_status_value(self, db_session, offer, admin_user):
        with pytest.raises(ValueError):
            await update_offer_status(db_session, offer.id, "archived", admin_user.id)


# ── information requests ──────────────────────────────────


class TestInfoRequest:
    @pytest.mark.asyncio
    async def test_request_keeps_previous_status(self, db_session, offer_factory, admin_user):
        offer = await offer_factory(status=S.APPROVED)

        result = await request_info(
            db_session, offer.id, ["ID card", "Balance sheet"], admin_user.id, "Before Friday"
        )

        await db_session.refresh(offer)
        assert offer.workflow_status == S.INFO_REQUESTED
        assert offer.previous_status == S.APPROVED
        assert result.log.reason == (
            "Additional information requested: ID card, Balance sheet. Before Friday"
        )

    @pytest.mark.asyncio
    async def test_waiting_offer_only_moves_through_response(self, db_session, offer, admin_user):
        await request_info(db_session, offer.id, ["ID card"], admin_user.id)

        with pytest.raises(InvalidTransitionError):
            await update_offer_status(db_session, offer.id, S.LEASER_REVIEW, admin_user.id)

    @pytest.mark.asyncio
    async def test_approve_resumes_to_leaser_review(self, db_session, offer, admin_user):
        await request_info(db_session, offer.id, ["ID card"], admin_user.id)
        await process_info_response(db_session, offer.id, True, admin_user.id)

        await db_session.refresh(offer)
        assert offer.workflow_status == S.LEASER_REVIEW
        assert offer.previous_status is None

        logs = await get_workflow_logs(db_session, offer.id)
        assert [log.new_status for log in logs] == ["leaser_review", "info_requested"]

    @pytest.mark.asyncio
    async def test_reject_ends_in_rejected(self, db_session, offer, admin_user):
        await request_info(db_session, offer.id, ["ID card"], admin_user.id)
        result = await process_info_response(db_session, offer.id, False, admin_user.id)

        assert result.new_status == S.REJECTED
        assert result.log.reason == "Additional information insufficient"

    @pytest.mark.asyncio
    async def test_response_without_request(self, db_session, offer, admin_user):
        with pytest.raises(InvalidTransitionError):
            await process_info_response(db_session, offer.id, True, admin_user.id)


# ── write ordering ────────────────────────────────────────


class TestWriteOrdering:
    @pytest.mark.asyncio
    async def test_failed_log_leaves_status_untouched(self, db_session, offer, admin_user, monkeypatch):
        offer_id, user_id = offer.id, admin_user.id

        async def failing_commit():
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(db_session, "commit", failing_commit)
        with pytest.raises(WorkflowLogError):
            await update_offer_status(db_session, offer_id, S.SENT, user_id)
        monkeypatch.undo()

        await db_session.refresh(offer)
        assert offer.workflow_status == S.DRAFT
        assert await get_workflow_logs(db_session, offer_id) == []

    @pytest.mark.asyncio
    async def test_failed_status_write_keeps_the_log(self, db_session, offer, admin_user, monkeypatch):
        offer_id, user_id = offer.id, admin_user.id
        real_commit = db_session.commit
        commits = []

        async def flaky_commit():
            commits.append(1)
            if len(commits) == 2:
                raise SQLAlchemyError("connection lost")
            await real_commit()

        monkeypatch.setattr(db_session, "commit", flaky_commit)
        with pytest.raises(SQLAlchemyError):
            await update_offer_status(db_session, offer_id, S.SENT, user_id)
        monkeypatch.undo()

        await db_session.refresh(offer)
        assert offer.workflow_status == S.DRAFT
        logs = await get_workflow_logs(db_session, offer_id)
        assert len(logs) == 1
        assert logs[0].new_status == "sent"

    @pytest.mark.asyncio
    async def test_contract_failure_keeps_the_approval(self, db_session, offer, admin_user, monkeypatch):
        async def unreachable(*args, **kwargs):
            raise RuntimeError("contract service unreachable")

        monkeypatch.setattr("leazr.services.workflow.create_contract_from_offer", unreachable)
        result = await update_offer_status(db_session, offer.id, S.LEASER_APPROVED, admin_user.id)

        assert result.contract_id is None
        assert result.contract_error == "contract service unreachable"

        await db_session.refresh(offer)
        assert offer.workflow_status == S.LEASER_APPROVED
        assert offer.converted_to_contract is False
        assert await list_contracts(db_session) == []

    @pytest.mark.asyncio
    async def test_failed_contract_flush_leaves_session_usable(self, db_session, offer, admin_user, monkeypatch):
        monkeypatch.setattr("leazr.services.workflow.create_contract_from_offer", contract_without_client)
        result = await update_offer_status(db_session, offer.id, S.LEASER_APPROVED, admin_user.id)

        assert result.contract_id is None
        assert "NOT NULL" in result.contract_error
        assert result.offer.workflow_status == S.LEASER_APPROVED
        assert result.log.new_status == "leaser_approved"

        await db_session.refresh(offer)
        assert offer.converted_to_contract is False
        assert await list_contracts(db_session) == []


# ── display metadata ──────────────────────────────────────


class TestStatusMetadata:
    def test_known_status(self):
        info = status_metadata("leaser_review")
        assert info.label == "Leaser review"
        assert info.progress == 80

    def test_unknown_status_falls_back_to_draft(self):
        assert status_metadata("archived") == STATUS_METADATA[S.DRAFT]
        assert status_metadata(None) == STATUS_METADATA[S.DRAFT]

    def test_converted_offer_is_shown_as_contract(self):
        info = status_metadata(S.LEASER_APPROVED, converted=True)
        assert info.id == "contract"
        assert info.progress == 100

    def test_progress_grows_along_the_main_path(self):
        path = [S.DRAFT, S.SENT, S.VALID_ITC, S.APPROVED, S.LEASER_REVIEW, S.LEASER_APPROVED, S.FINANCED]
        progress = [STATUS_METADATA[status].progress for status in path]
        assert progress == sorted(progress)
        assert STATUS_METADATA[S.REJECTED].progress == 0
