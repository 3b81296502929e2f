# tests/v1/test_fraud.py
"""Tests for the fraud attempt listing."""

from fastapi import status

from tests.conftest import HOLDER_ID


def _scan(client, headers, token, context_id):
    client.post(
        "/api/v1/redemptions/",
        json={"ticket_token": token, "context_id": context_id},
        headers=headers,
    )


def test_listing_requires_service_role(client, agent_headers) -> None:
    response = client.get("/api/v1/fraud-attempts/", headers=agent_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_lists_recorded_attempts(client, agent_headers, service_headers, ticket, clock) -> None:
    _scan(client, agent_headers, ticket.id, "bus-12")
    clock.advance(minutes=5)
    _scan(client, agent_headers, ticket.id, "bus-40")
    clock.advance(minutes=5)
    _scan(client, agent_headers, ticket.id, "bus-12")

    response = client.get("/api/v1/fraud-attempts/", headers=service_headers)

    assert response.status_code == status.HTTP_200_OK
    attempts = response.json()
    assert len(attempts) == 2
    newest, oldest = attempts
    assert newest["fraud_type"] == "same_context"
    assert newest["severity"] == "medium"
    assert newest["minutes_elapsed"] == 10
    assert oldest["fraud_type"] == "different_context"
    assert oldest["holder_attempts"] == 1
    assert {a["holder_id"] for a in attempts} == {HOLDER_ID}


def test_filters_by_ticket(client, agent_headers, service_headers, ticket) -> None:
    _scan(client, agent_headers, ticket.id, "bus-12")
    _scan(client, agent_headers, ticket.id, "bus-12")

    matching = client.get(
        "/api/v1/fraud-attempts/", params={"ticket_id": ticket.id}, headers=service_headers
    ).json()
    other = client.get(
        "/api/v1/fraud-attempts/", params={"ticket_id": "other"}, headers=service_headers
    ).json()

    assert len(matching) == 1
    assert other == []


def test_limit_is_bounded(client, service_headers) -> None:
    response = client.get("/api/v1/fraud-attempts/", params={"limit": 500}, headers=service_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
