"""
Unit tests for webform submission API endpoints.

Tests cover:
1. State options and handler summaries
2. Creating a submission issues one confirmation challenge
3. Confirmation picked up on refresh, notification sent once confirmed
4. Error mapping (dispatch failure, invalid realm, not found)
"""

from fastapi.testclient import TestClient

from src.adapters.dev_confirmer import InMemoryEmailConfirmer
from src.adapters.dev_email import DevEmailAdapter
from src.adapters.sqlite_db import SQLiteSubmissionRepo
from src.core.entities import OptInStatus

OPT_IN_HANDLER = "webform_double_opt_in_email"
NOTIFICATION_HANDLER = "webform_double_opt_in_compatible_email"


def create(client: TestClient, submission_id: str = "s1", **overrides) -> dict:
    payload = {
        "id": submission_id,
        "webform_id": "contact",
        "data": {"email": "ann@example.com", "name": "Ann"},
    }
    payload.update(overrides)
    response = client.post("/api/webform/submissions", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestStateOptions:
    """GET /api/webform/state-options"""

    def test_lists_lifecycle_and_confirmed_states(self, client: TestClient) -> None:
        response = client.get("/api/webform/state-options")

        assert response.status_code == 200
        keys = [option["key"] for option in response.json()]
        assert keys[:6] == ["draft", "converted", "completed", "updated", "deleted", "locked"]
        assert "double_opt_in_confirmed" in keys


class TestHandlers:
    """GET /api/webform/handlers"""

    def test_summaries(self, client: TestClient) -> None:
        response = client.get("/api/webform/handlers")

        assert response.status_code == 200
        summaries = {s["handler_id"]: s for s in response.json()}
        assert summaries[OPT_IN_HANDLER]["settings"]["states"] == ["completed"]
        assert summaries[OPT_IN_HANDLER]["warnings"] == []
        assert summaries[NOTIFICATION_HANDLER]["settings"]["states"] == [
            "double_opt_in_confirmed"
        ]


class TestCreateSubmission:
    """POST /api/webform/submissions"""

    def test_create_requests_confirmation(
        self,
        client: TestClient,
        confirmer: InMemoryEmailConfirmer,
        email_sender: DevEmailAdapter,
    ) -> None:
        body = create(client)

        assert body["id"] == "s1"
        assert body["state"] == "completed"
        assert body["opt_in_status"] == "pending"
        assert body["handler_results"] == {
            OPT_IN_HANDLER: "confirmation_requested",
            NOTIFICATION_HANDLER: "not_sent",
        }
        assert confirmer.request_count == 1
        assert confirmer.issued[0].request.realm == "webform_double_opt_in_s1"
        assert email_sender.email_count == 0

    def test_generated_id(self, client: TestClient) -> None:
        body = create(client, submission_id=None)
        assert body["id"]

    def test_draft_not_triggered(
        self,
        client: TestClient,
        confirmer: InMemoryEmailConfirmer,
    ) -> None:
        body = create(client, state="draft")

        assert body["opt_in_status"] == "pending_mail"
        assert body["handler_results"][OPT_IN_HANDLER] == "not_triggered"
        assert confirmer.request_count == 0

    def test_status_key_in_data_rejected(
        self,
        client: TestClient,
        confirmer: InMemoryEmailConfirmer,
        email_sender: DevEmailAdapter,
        test_repo: SQLiteSubmissionRepo,
    ) -> None:
        for value in ("confirmed", "Double opt-in confirmed"):
            response = client.post(
                "/api/webform/submissions",
                json={
                    "id": "s1",
                    "webform_id": "contact",
                    "data": {"email": "ann@example.com", "opt_in_status": value},
                },
            )

            assert response.status_code == 422

        assert test_repo.get_by_id("s1") is None
        assert confirmer.request_count == 0
        assert email_sender.email_count == 0

    def test_duplicate_id(self, client: TestClient) -> None:
        create(client)
        response = client.post(
            "/api/webform/submissions",
            json={"id": "s1", "webform_id": "contact", "data": {}},
        )
        assert response.status_code == 409

    def test_dispatch_failure_maps_to_502(
        self,
        client: TestClient,
        confirmer: InMemoryEmailConfirmer,
        test_repo: SQLiteSubmissionRepo,
    ) -> None:
        confirmer.fail_with = RuntimeError("smtp down")

        response = client.post(
            "/api/webform/submissions",
            json={"id": "s1", "webform_id": "contact", "data": {"email": "ann@example.com"}},
        )

        assert response.status_code == 502
        stored = test_repo.get_by_id("s1")
        assert stored is not None
        assert stored.opt_in_status == OptInStatus.DISPATCH_FAILED

    def test_invalid_realm_maps_to_422(self, client: TestClient) -> None:
        response = client.post(
            "/api/webform/submissions",
            json={"id": "not valid", "webform_id": "contact", "data": {"email": "a@example.com"}},
        )
        assert response.status_code == 422

    def test_missing_recipient_maps_to_422(self, client: TestClient) -> None:
        response = client.post(
            "/api/webform/submissions",
            json={"id": "s1", "webform_id": "contact", "data": {}},
        )
        assert response.status_code == 422


class TestConfirmationFlow:
    """Confirm, refresh, notify."""

    def test_refresh_after_confirmation_sends_notification(
        self,
        client: TestClient,
        confirmer: InMemoryEmailConfirmer,
        email_sender: DevEmailAdapter,
    ) -> None:
        create(client)

        response = client.post(
            "/api/webform/dev/confirmations",
            json={"email": "ann@example.com", "realm": "webform_double_opt_in_s1"},
        )
        assert response.status_code == 200
        assert response.json()["confirmed"] is True

        response = client.post("/api/webform/submissions/s1/refresh")

        assert response.status_code == 200
        body = response.json()
        assert body["opt_in_status"] == "confirmed"
        assert body["handler_results"] == {
            OPT_IN_HANDLER: "confirmed",
            NOTIFICATION_HANDLER: "sent",
        }
        assert email_sender.email_count == 1
        assert email_sender.get_emails_to("ann@example.com")[0].subject == (
            "Your submission to contact"
        )
        assert confirmer.request_count == 1

    def test_repeated_refresh_notifies_once(
        self,
        client: TestClient,
        confirmer: InMemoryEmailConfirmer,
        email_sender: DevEmailAdapter,
    ) -> None:
        create(client)
        confirmer.mark_confirmed("ann@example.com", "webform_double_opt_in_s1")

        bodies = [
            client.post("/api/webform/submissions/s1/refresh").json() for _ in range(3)
        ]

        assert [b["handler_results"][NOTIFICATION_HANDLER] for b in bodies] == [
            "sent",
            "not_sent",
            "not_sent",
        ]
        assert [b["handler_results"][OPT_IN_HANDLER] for b in bodies] == [
            "confirmed",
            "already_confirmed",
            "already_confirmed",
        ]
        assert email_sender.email_count == 1
        assert confirmer.request_count == 1

    def test_refresh_without_confirmation(
        self,
        client: TestClient,
        email_sender: DevEmailAdapter,
    ) -> None:
        create(client)

        response = client.post("/api/webform/submissions/s1/refresh")

        assert response.json()["handler_results"][OPT_IN_HANDLER] == "awaiting_confirmation"
        assert email_sender.email_count == 0

    def test_invalid_confirmation_email(self, client: TestClient) -> None:
        response = client.post(
            "/api/webform/dev/confirmations",
            json={"email": "nope", "realm": "webform_double_opt_in"},
        )
        assert response.status_code == 422


class TestReadUpdateDelete:
    """GET/PUT/DELETE /api/webform/submissions/{id}"""

    def test_get(self, client: TestClient) -> None:
        create(client)

        response = client.get("/api/webform/submissions/s1")

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Ann"
        assert response.json()["handler_results"] == {}

    def test_get_not_found(self, client: TestClient) -> None:
        assert client.get("/api/webform/submissions/missing").status_code == 404

    def test_update_cannot_reset_status(
        self,
        client: TestClient,
        confirmer: InMemoryEmailConfirmer,
    ) -> None:
        create(client)

        response = client.put(
            "/api/webform/submissions/s1",
            json={
                "data": {"email": "ann@example.com", "opt_in_status": "pending_mail"},
                "state": "completed",
            },
        )

        assert response.status_code == 200
        assert response.json()["opt_in_status"] == "pending"
        assert confirmer.request_count == 1

    def test_update_not_found(self, client: TestClient) -> None:
        response = client.put("/api/webform/submissions/missing", json={"state": "updated"})
        assert response.status_code == 404

    def test_delete(
        self,
        client: TestClient,
        confirmer: InMemoryEmailConfirmer,
        email_sender: DevEmailAdapter,
    ) -> None:
        create(client)

        response = client.delete("/api/webform/submissions/s1")

        assert response.status_code == 204
        assert client.get("/api/webform/submissions/s1").status_code == 404
        assert confirmer.request_count == 1
        assert email_sender.email_count == 0

    def test_delete_not_found(self, client: TestClient) -> None:
        assert client.delete("/api/webform/submissions/missing").status_code == 404
