import pytest
from fastapi.testclient import TestClient

import app as app_module
from conftest import sf_record
from tools.idempotency import Idem


@pytest.fixture
def client_with(monkeypatch, make_services):
    """TestClient wired to mocked services and a fresh dedup cache."""

    def _client(**kwargs):
        services = make_services(**kwargs)
        monkeypatch.setattr(app_module, "services", services)
        monkeypatch.setattr(app_module, "idem", Idem(max_keys=1))
        return TestClient(app_module.app), services

    return _client


def join_event(user_id="U1", token="test-token"):
    return {
        "token": token,
        "type": "event_callback",
        "event": {"type": "team_join", "user": {"id": user_id, "profile": {"display_name": "jane"}}},
    }


class TestWebhookEndpoint:
    """The Slack Events API endpoint."""

    def test_challenge_is_echoed(self, client_with):
        client, _ = client_with()

        response = client.post("/", json={"token": "test-token", "challenge": "3eZbrw1aBm2rZgRNFdxV2595E9CY3gmdALWMmHkvFXO7tYXAYM8P", "type": "url_verification"})

        assert response.status_code == 200
        assert response.text == "3eZbrw1aBm2rZgRNFdxV2595E9CY3gmdALWMmHkvFXO7tYXAYM8P"

    def test_challenge_with_bad_token_is_rejected(self, client_with):
        client, _ = client_with()

        response = client.post("/", json={"token": "nope", "challenge": "abc"})

        assert response.status_code == 403

    def test_event_with_bad_token_is_not_processed(self, client_with):
        client, services = client_with()

        response = client.post("/", json=join_event(token="nope"))

        assert response.status_code == 403
        services.slack.get_profile.assert_not_called()

    def test_event_is_processed_after_ok(self, client_with):
        client, services = client_with(
            company={"name": "Acme", "is_isp": False},
            domain_results=[sf_record("Account", "A1", OwnerId="005x")],
        )

        response = client.post("/", json=join_event())

        assert response.status_code == 200
        assert response.text == "ok"
        services.slack.get_profile.assert_called_once_with("U1")
        contact = services.salesforce.create.call_args.args[1]
        assert services.salesforce.create.call_args.args[0] == "Contact"
        assert contact["AccountId"] == "A1"
        assert contact["OwnerId"] == "005x"
        body = services.salesforce.post_feed.call_args.args[0]
        assert body["body"]["messageSegments"][0] == {"type": "Mention", "id": "005x"}

    def test_pipeline_failure_still_returns_ok(self, client_with):
        client, services = client_with()
        services.salesforce.login.side_effect = RuntimeError("down")

        response = client.post("/", json=join_event())

        assert response.status_code == 200
        assert response.text == "ok"
        services.salesforce.create.assert_not_called()

    def test_consecutive_duplicate_is_dropped(self, client_with):
        client, services = client_with()

        client.post("/", json=join_event("U1"))
        response = client.post("/", json=join_event("U1"))

        assert response.text == "ok"
        assert services.slack.get_profile.call_count == 1
        assert services.salesforce.create.call_count == 1

    def test_different_user_resumes_processing(self, client_with):
        client, services = client_with()
        services.salesforce.search.side_effect = None
        services.salesforce.search.return_value = []

        client.post("/", json=join_event("U1"))
        client.post("/", json=join_event("U1"))
        client.post("/", json=join_event("U2"))

        assert services.salesforce.create.call_count == 2
        assert [c.args[0] for c in services.slack.get_profile.call_args_list] == ["U1", "U2"]

    def test_event_without_user_is_ignored(self, client_with):
        client, services = client_with()

        response = client.post("/", json={"token": "test-token", "event": {"type": "team_join"}})

        assert response.text == "ok"
        services.slack.get_profile.assert_not_called()

    def test_non_json_body_is_rejected(self, client_with):
        client, _ = client_with()

        response = client.post("/", content=b"not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400

    @pytest.mark.parametrize("payload", [
        {"token": "test-token", "event": "oops"},
        {"token": "test-token", "event": ["team_join"]},
        {"token": "test-token", "event": {"type": "team_join", "user": ["U1"]}},
        {"token": "test-token", "event": {"type": "team_join", "user": 42}},
    ])
    def test_malformed_event_is_ignored(self, client_with, payload):
        client, services = client_with()

        response = client.post("/", json=payload)

        assert response.status_code == 200
        assert response.text == "ok"
        services.slack.get_profile.assert_not_called()

    def test_null_challenge_does_not_swallow_the_event(self, client_with):
        client, services = client_with()

        payload = join_event()
        payload["challenge"] = None
        response = client.post("/", json=payload)

        assert response.text == "ok"
        services.slack.get_profile.assert_called_once_with("U1")
