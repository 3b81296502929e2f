# tests/v1/test_validations.py
"""Tests for daily validation counters."""

from fastapi import status

from tests.conftest import make_ticket


def _redeem(client, headers, token, context_id="bus-12"):
    return client.post(
        "/api/v1/redemptions/",
        json={"ticket_token": token, "context_id": context_id},
        headers=headers,
    )


def test_daily_count_for_context(client, agent_headers, db_session, holder_account) -> None:
    for _ in range(2):
        _redeem(client, agent_headers, make_ticket(db_session).id)
    _redeem(client, agent_headers, "bogus")

    response = client.get(
        "/api/v1/validations/daily", params={"context_id": "bus-12"}, headers=agent_headers
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["count"] == 2
    assert data["total"] == 18.0
    assert data["timezone"] == "America/Hermosillo"


def test_daily_count_resets_next_local_day(
    client, agent_headers, db_session, holder_account, clock
) -> None:
    _redeem(client, agent_headers, make_ticket(db_session).id)
    clock.advance(days=1)

    data = client.get(
        "/api/v1/validations/daily", params={"context_id": "bus-12"}, headers=agent_headers
    ).json()

    assert data["count"] == 0
    assert data["total"] == 0.0


def test_daily_summary(
    client, agent_headers, service_headers, db_session, holder_account, clock
) -> None:
    _redeem(client, agent_headers, make_ticket(db_session).id, "bus-12")
    _redeem(client, agent_headers, make_ticket(db_session).id, "bus-40")
    clock.advance(minutes=30)
    _redeem(client, agent_headers, make_ticket(db_session).id, "bus-40")

    assert client.get("/api/v1/validations/daily/summary", headers=agent_headers).status_code == 403

    data = client.get("/api/v1/validations/daily/summary", headers=service_headers).json()

    assert data["counts"] == {"bus-12": 1, "bus-40": 2}
    assert data["total"] == 27.0
