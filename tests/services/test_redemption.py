# tests/services/test_redemption.py
"""End-to-end behaviour of the redemption engine."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from fare_gate.models import FraudAttempt, ValidationLogEntry
from fare_gate.models.ticket import TICKET_STATE_ACTIVE, TICKET_STATE_USED
from fare_gate.repositories.ticket_repo import TicketRepository
from fare_gate.services.errors import InsufficientCreditError
from fare_gate.services.issuance import IssuanceService
from fare_gate.services.ledger import AccountLedger
from fare_gate.services.redemption import RedemptionEngine, RedemptionRequest
from fare_gate.services.transfer import TransferManager
from tests.conftest import BASE_TIME, HOLDER_ID, make_account, make_ticket


def _request(token, context_id="bus-12", lat=29.0729, lon=-110.9559, route_id="R1"):
    return RedemptionRequest(
        ticket_token=token,
        context_id=context_id,
        route_id=route_id,
        latitude=lat,
        longitude=lon,
        agent_id="agent-01",
    )


def _results(db_session):
    return [
        entry.result
        for entry in db_session.query(ValidationLogEntry).order_by(ValidationLogEntry.id)
    ]


def test_first_redemption_is_valid(db_session, ticket, clock) -> None:
    engine = RedemptionEngine(db_session, clock=clock)

    result = engine.redeem(_request(ticket.id))

    assert result.valid is True
    assert result.message == "TICKET VALID"
    assert result.error_type is None
    assert result.fraud is None
    receipt = result.receipt
    assert receipt.short_code == ticket.id[-6:].upper()
    assert receipt.redeemed_at == BASE_TIME
    assert receipt.amount == 9.0
    assert receipt.daily_context_count == 1
    assert receipt.daily_context_total == 9.0

    stored = TicketRepository(db_session).get(ticket.id)
    assert stored.state == TICKET_STATE_USED
    assert stored.used_by_context_id == "bus-12"
    assert stored.used_route_id == "R1"
    assert stored.used_at_latitude == pytest.approx(29.0729)

    account = AccountLedger(db_session).get_account(HOLDER_ID)
    assert account.credit_count == 4
    assert account.total_redeemed_count == 1
    assert _results(db_session) == ["valid"]


def test_second_presentation_elsewhere_is_fraud(db_session, ticket, bus_contexts, clock) -> None:
    engine = RedemptionEngine(db_session, clock=clock)
    engine.redeem(_request(ticket.id, "bus-12"))

    clock.advance(minutes=10)
    result = engine.redeem(_request(ticket.id, "bus-40", lat=29.0900, lon=-110.9600, route_id="R2"))

    assert result.valid is False
    assert result.error_type == "fraud"
    assert result.message == "FRAUD ALERT - TICKET ALREADY USED"
    alert = result.fraud
    assert alert.fraud_type == "different_context"
    assert alert.same_context is False
    assert alert.minutes_elapsed == 10
    assert alert.severity == "low"
    assert alert.distance_km == pytest.approx(1.9, abs=0.2)
    assert alert.original_context_id == "bus-12"
    assert alert.original_context_label == "Eco 12"
    assert alert.original_route_id == "R1"
    assert alert.holder_attempts == 1

    # Fraud never touches the ticket or the ledger.
    stored = TicketRepository(db_session).get(ticket.id)
    assert stored.used_by_context_id == "bus-12"
    assert stored.used_at == BASE_TIME
    assert AccountLedger(db_session).get_account(HOLDER_ID).credit_count == 4
    assert _results(db_session) == ["valid", "fraud"]


def test_same_context_double_scan(db_session, ticket, clock) -> None:
    engine = RedemptionEngine(db_session, clock=clock)
    engine.redeem(_request(ticket.id))
    clock.advance(seconds=20)

    result = engine.redeem(_request(ticket.id))

    assert result.fraud.fraud_type == "same_context"
    assert result.fraud.minutes_elapsed == 0
    assert result.fraud.distance_km == pytest.approx(0.0)


def test_repeat_offender_escalates_to_critical(db_session, ticket, clock) -> None:
    engine = RedemptionEngine(db_session, clock=clock)
    engine.redeem(_request(ticket.id))

    severities = []
    for _ in range(6):
        clock.advance(minutes=1)
        severities.append(engine.redeem(_request(ticket.id, "bus-40")).fraud.severity)

    assert severities == ["low", "medium", "medium", "high", "high", "critical"]
    assert db_session.query(FraudAttempt).count() == 6


def test_expired_transfer_is_reclaimed_then_redeemable(db_session, ticket, clock) -> None:
    TransferManager(db_session, clock=clock).begin_transfer(ticket.id, HOLDER_ID)
    engine = RedemptionEngine(db_session, clock=clock)

    clock.advance(hours=25)
    expired = engine.redeem(_request(ticket.id))

    assert expired.valid is False
    assert expired.error_type == "expired_transfer"
    assert "returned to its original holder" in expired.message
    stored = TicketRepository(db_session).get(ticket.id)
    assert stored.state == TICKET_STATE_ACTIVE
    assert stored.transfer_expires_at is None

    clock.advance(hours=1)
    redeemed = engine.redeem(_request(ticket.id))

    assert redeemed.valid is True
    assert _results(db_session) == ["expired_transfer", "valid"]


def test_pending_transfer_redeems_inside_window(db_session, ticket, clock) -> None:
    TransferManager(db_session, clock=clock).begin_transfer(ticket.id, HOLDER_ID)
    clock.advance(hours=2)

    result = RedemptionEngine(db_session, clock=clock).redeem(_request(ticket.id))

    assert result.valid is True
    stored = TicketRepository(db_session).get(ticket.id)
    assert stored.state == TICKET_STATE_USED
    assert stored.transfer_expires_at is None


def test_unknown_token_is_invalid_and_logged(db_session, clock) -> None:
    result = RedemptionEngine(db_session, clock=clock).redeem(_request("not-a-ticket"))

    assert result.valid is False
    assert result.error_type == "invalid"
    assert result.message == "Invalid ticket or it does not exist"
    entry = db_session.query(ValidationLogEntry).one()
    assert entry.result == "invalid"
    assert entry.ticket_id is None
    assert entry.context_id == "bus-12"


def test_voided_ticket_is_inactive(db_session, ticket, clock) -> None:
    IssuanceService(db_session, clock=clock).void(ticket.id)

    result = RedemptionEngine(db_session, clock=clock).redeem(_request(ticket.id))

    assert result.valid is False
    assert result.error_type == "inactive"
    assert result.message == "Ticket not valid. State: expired"
    assert db_session.query(FraudAttempt).count() == 0


def test_fresh_tickets_never_raise_fraud(db_session, holder_account, clock) -> None:
    engine = RedemptionEngine(db_session, clock=clock)
    tokens = [make_ticket(db_session).id for _ in range(3)]

    results = [engine.redeem(_request(token)) for token in tokens]

    assert all(result.valid for result in results)
    assert [r.receipt.daily_context_count for r in results] == [1, 2, 3]
    assert results[-1].receipt.daily_context_total == 27.0
    assert db_session.query(FraudAttempt).count() == 0


def test_redemption_without_credit_is_rolled_back(db_session, clock) -> None:
    make_account(db_session, credits=0)
    ticket = make_ticket(db_session)

    with pytest.raises(InsufficientCreditError):
        RedemptionEngine(db_session, clock=clock).redeem(_request(ticket.id))

    assert TicketRepository(db_session).get(ticket.id).state == TICKET_STATE_ACTIVE
    account = AccountLedger(db_session).get_account(HOLDER_ID)
    assert account.credit_count == 0
    assert account.total_redeemed_count == 0
    assert _results(db_session) == []


def test_one_credit_pays_for_exactly_one_ride(db_session, clock) -> None:
    make_account(db_session, credits=1)
    issuance = IssuanceService(db_session, clock=clock)
    engine = RedemptionEngine(db_session, clock=clock)

    ticket = issuance.issue(HOLDER_ID)
    with pytest.raises(InsufficientCreditError):
        issuance.issue(HOLDER_ID)

    assert engine.redeem(_request(ticket.id)).valid is True
    with pytest.raises(InsufficientCreditError):
        issuance.issue(HOLDER_ID)

    account = AccountLedger(db_session).get_account(HOLDER_ID)
    assert account.credit_count == 0
    assert account.total_redeemed_count == 1


def test_issued_tickets_all_redeem_against_their_credits(db_session, clock) -> None:
    make_account(db_session, credits=3)
    issuance = IssuanceService(db_session, clock=clock)
    engine = RedemptionEngine(db_session, clock=clock)
    tickets = [issuance.issue(HOLDER_ID) for _ in range(3)]

    results = [engine.redeem(_request(t.id)) for t in tickets]

    assert all(result.valid for result in results)
    account = AccountLedger(db_session).get_account(HOLDER_ID)
    assert account.credit_count == 0
    assert account.total_redeemed_count == 3


def test_daily_counter_resets_at_local_midnight(db_session, holder_account, clock) -> None:
    engine = RedemptionEngine(db_session, clock=clock)
    # 23:50 local in Hermosillo is 06:50 UTC the next day.
    clock.now = BASE_TIME.replace(hour=6, minute=50) + timedelta(days=1)
    engine.redeem(_request(make_ticket(db_session).id))
    engine.redeem(_request(make_ticket(db_session).id))

    clock.advance(minutes=15)
    after_midnight = engine.redeem(_request(make_ticket(db_session).id))

    assert after_midnight.receipt.daily_context_count == 1


def test_lost_race_goes_down_fraud_path(db_session, ticket, clock) -> None:
    engine = RedemptionEngine(db_session, clock=clock)
    repo = engine.repo
    real_transition = repo.transition

    def _someone_else_wins(ticket_id, expected_state, new_state, fields=None):
        real_transition(
            ticket_id,
            TICKET_STATE_ACTIVE,
            TICKET_STATE_USED,
            {"used_at": BASE_TIME, "used_by_context_id": "bus-40"},
        )
        return real_transition(ticket_id, expected_state, new_state, fields)

    with patch.object(repo, "transition", side_effect=_someone_else_wins):
        result = engine.redeem(_request(ticket.id, "bus-12"))

    assert result.valid is False
    assert result.error_type == "fraud"
    assert result.fraud.original_context_id == "bus-40"
    assert AccountLedger(db_session).get_account(HOLDER_ID).credit_count == 5


def test_lookup_retries_storage_failure_once(db_session, ticket, clock) -> None:
    engine = RedemptionEngine(db_session, clock=clock)
    real_get = engine.repo.get
    calls = {"count": 0}

    def _flaky_get(ticket_id):
        calls["count"] += 1
        if calls["count"] == 1:
            raise OperationalError("SELECT", {}, Exception("database is locked"))
        return real_get(ticket_id)

    with patch.object(engine.repo, "get", side_effect=_flaky_get):
        result = engine.redeem(_request(ticket.id))

    assert result.valid is True
    assert calls["count"] == 2


def test_lookup_gives_up_after_retry(db_session, clock) -> None:
    engine = RedemptionEngine(db_session, clock=clock)
    failure = OperationalError("SELECT", {}, Exception("disk I/O error"))

    with patch.object(engine.repo, "get", side_effect=failure):
        with pytest.raises(OperationalError):
            engine.redeem(_request("any"))
