"""Integration tests for exchange request endpoints.

This module contains integration tests for requesting books, listing sent
and incoming requests, and moving requests through the exchange workflow.
"""

import pytest
from fastapi.testclient import TestClient

from bookswap.models.book import Book
from bookswap.models.user import User


@pytest.fixture
def pending_request_id(client: TestClient, test_book: Book, other_auth_headers: dict) -> int:
    """Bob requests Alice's book through the API."""
    response = client.post(
        "/api/exchange-requests",
        json={"book_id": test_book.id, "message": "Would swap for Dune"},
        headers=other_auth_headers,
    )
    assert response.status_code == 201
    return response.json()["id"]


def set_status(client: TestClient, request_id: int, status: str, headers: dict):
    return client.put(
        f"/api/exchange-requests/{request_id}/status", json={"status": status}, headers=headers
    )


class TestCreateExchangeRequest:
    """Integration tests for POST /api/exchange-requests."""

    def test_create_request(
        self, client: TestClient, test_book: Book, other_user: User, other_auth_headers: dict
    ):
        response = client.post(
            "/api/exchange-requests",
            json={"book_id": test_book.id, "message": "Hello!"},
            headers=other_auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["book_id"] == test_book.id
        assert data["requester_id"] == other_user.id
        assert data["message"] == "Hello!"

    def test_create_request_own_book(self, client: TestClient, test_book: Book, auth_headers: dict):
        response = client.post(
            "/api/exchange-requests", json={"book_id": test_book.id}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Cannot request your own book"

    def test_create_request_unavailable_book(
        self, client: TestClient, book_factory, test_user: User, other_auth_headers: dict
    ):
        book = book_factory(test_user, "Gone", is_available=False)

        response = client.post(
            "/api/exchange-requests", json={"book_id": book.id}, headers=other_auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Book is not available for exchange"

    def test_create_request_missing_book(self, client: TestClient, other_auth_headers: dict):
        response = client.post(
            "/api/exchange-requests", json={"book_id": 999}, headers=other_auth_headers
        )

        assert response.status_code == 404

    def test_create_request_invalid_body(self, client: TestClient, other_auth_headers: dict):
        response = client.post(
            "/api/exchange-requests", json={"book_id": "abc"}, headers=other_auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"

    def test_create_request_requires_authentication(self, client: TestClient, test_book: Book):
        response = client.post("/api/exchange-requests", json={"book_id": test_book.id})

        assert response.status_code == 401


class TestListExchangeRequests:
    """Integration tests for GET /api/my-requests and /api/incoming-requests."""

    def test_my_requests(
        self, client: TestClient, pending_request_id: int, test_book: Book,
        test_user: User, other_auth_headers: dict
    ):
        response = client.get("/api/my-requests", headers=other_auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["id"] == pending_request_id
        assert data[0]["book"]["title"] == test_book.title
        assert data[0]["book"]["owner"]["id"] == test_user.id

    def test_incoming_requests(
        self, client: TestClient, pending_request_id: int, other_user: User, auth_headers: dict
    ):
        response = client.get("/api/incoming-requests", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [r["id"] for r in data] == [pending_request_id]
        assert data[0]["requester"]["id"] == other_user.id
        assert data[0]["requester"]["display_name"] == "Bob Tester"

    def test_lists_are_per_side(
        self, client: TestClient, pending_request_id: int, auth_headers: dict,
        other_auth_headers: dict
    ):
        assert client.get("/api/my-requests", headers=auth_headers).json() == []
        assert client.get("/api/incoming-requests", headers=other_auth_headers).json() == []


class TestUpdateExchangeRequestStatus:
    """Integration tests for PUT /api/exchange-requests/{id}/status."""

    def test_owner_accepts_and_book_leaves_listing(
        self, client: TestClient, pending_request_id: int, test_book: Book, auth_headers: dict
    ):
        response = set_status(client, pending_request_id, "accepted", auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "accepted"

        assert client.get("/api/books").json()["total"] == 0
        assert client.get(f"/api/books/{test_book.id}").json()["is_available"] is False

    def test_requester_cannot_accept(
        self, client: TestClient, pending_request_id: int, other_auth_headers: dict
    ):
        response = set_status(client, pending_request_id, "accepted", other_auth_headers)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "authorization_error"

    def test_requester_completes_after_accept(
        self, client: TestClient, pending_request_id: int, auth_headers: dict,
        other_auth_headers: dict
    ):
        assert set_status(client, pending_request_id, "accepted", auth_headers).status_code == 200

        response = set_status(client, pending_request_id, "completed", other_auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert client.get("/api/books").json()["total"] == 0

    def test_pending_request_cannot_be_completed(
        self, client: TestClient, pending_request_id: int, auth_headers: dict,
        other_auth_headers: dict
    ):
        for headers in (auth_headers, other_auth_headers):
            response = set_status(client, pending_request_id, "completed", headers)

            assert response.status_code == 409
            assert response.json()["error"]["code"] == "conflict_error"

        assert client.get("/api/books").json()["total"] == 1

    def test_competing_requester_cannot_complete(
        self, client: TestClient, pending_request_id: int, test_book: Book,
        auth_headers_for, third_user: User, auth_headers: dict
    ):
        carol_headers = auth_headers_for(third_user)
        competing = client.post(
            "/api/exchange-requests", json={"book_id": test_book.id}, headers=carol_headers
        ).json()["id"]
        assert set_status(client, pending_request_id, "accepted", auth_headers).status_code == 200

        response = set_status(client, competing, "completed", carol_headers)

        assert response.status_code == 409

    def test_rejected_request_cannot_be_accepted(
        self, client: TestClient, pending_request_id: int, auth_headers: dict
    ):
        assert set_status(client, pending_request_id, "rejected", auth_headers).status_code == 200

        response = set_status(client, pending_request_id, "accepted", auth_headers)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "conflict_error"

    def test_second_accept_conflicts(
        self, client: TestClient, pending_request_id: int, test_book: Book,
        auth_headers_for, third_user: User, auth_headers: dict
    ):
        competing = client.post(
            "/api/exchange-requests",
            json={"book_id": test_book.id},
            headers=auth_headers_for(third_user),
        ).json()["id"]

        assert set_status(client, pending_request_id, "accepted", auth_headers).status_code == 200

        response = set_status(client, competing, "accepted", auth_headers)

        assert response.status_code == 409
        assert response.json()["error"]["message"] == "Book is no longer available"

    def test_invalid_status(self, client: TestClient, pending_request_id: int, auth_headers: dict):
        response = set_status(client, pending_request_id, "pending", auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == (
            "Invalid status. Must be one of: accepted, rejected, completed"
        )

    def test_invalid_status_on_missing_request(self, client: TestClient, auth_headers: dict):
        assert set_status(client, 999, "bogus", auth_headers).status_code == 400

    def test_missing_request(self, client: TestClient, auth_headers: dict):
        assert set_status(client, 999, "accepted", auth_headers).status_code == 404

    def test_requires_authentication(self, client: TestClient, pending_request_id: int):
        response = client.put(
            f"/api/exchange-requests/{pending_request_id}/status", json={"status": "accepted"}
        )

        assert response.status_code == 401
