"""Tests for the HTTP API."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from src.core.config.settings import reset_settings
from src.core.exceptions import RelayFailedError
from web.app import create_app

PHONE = "9876543210"
CANONICAL_PHONE = "+919876543210"


def _wrong_code(code: str) -> str:
    return "111111" if code != "111111" else "222222"


@pytest.fixture
def client(delivery, form_relay):
    """Test client without lifespan, so no background sweep runs."""
    app = create_app(run_security_validation=False, delivery=delivery, form_relay=form_relay)
    return TestClient(app)


def _send(client, phone=PHONE):
    response = client.post("/api/send-otp", json={"phoneNumber": phone})
    assert response.status_code == 200
    return response.json()


def _verified_session(client) -> str:
    sent = _send(client)
    response = client.post(
        "/api/verify-otp", json={"sessionId": sent["sessionId"], "otpCode": sent["otpCode"]}
    )
    assert response.status_code == 200
    return sent["sessionId"]


class TestHealth:
    """Tests for /health."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Server is running"
        assert data["active_sessions"] == 0
        assert "timestamp" in data
        assert data["status"] == "healthy"
        assert data["pending_sessions"] == 0
        assert data["verified_sessions"] == 0
        assert data["cleanup_running"] is False

    def test_health_counts_pending_and_verified(self, client):
        _send(client)
        _verified_session(client)

        data = client.get("/health").json()

        assert data["active_sessions"] == 2
        assert data["pending_sessions"] == 1
        assert data["verified_sessions"] == 1

    def test_unknown_route(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["message"] == "Endpoint not found"


class TestSendOTP:
    """Tests for /api/send-otp."""

    def test_send_returns_session_and_code_in_testing(self, client, delivery):
        data = _send(client)
        assert data["success"] is True
        assert data["message"] == "OTP sent successfully"
        assert len(data["sessionId"]) == 64
        assert data["otpCode"] == delivery.last_code
        assert delivery.sent[0][0] == CANONICAL_PHONE

    def test_code_hidden_in_production(self, delivery, form_relay, monkeypatch):
        monkeypatch.setenv("ENV", "production")
        monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://app.example.in")
        monkeypatch.setenv("OTP_PROVIDER", "msg91")
        monkeypatch.setenv("MSG91_AUTH_KEY", "key")
        monkeypatch.setenv("MSG91_TEMPLATE_ID", "tmpl")
        monkeypatch.setenv("FORM_RELAY_URL", "https://crm.example.in/forms")
        reset_settings()

        app = create_app(run_security_validation=False, delivery=delivery, form_relay=form_relay)
        data = TestClient(app).post("/api/send-otp", json={"phoneNumber": PHONE}).json()

        assert "otpCode" not in data
        assert data["sessionId"]

    @pytest.mark.parametrize("phone", ["12345", "5876543210", "abc", "+1 9876543210"])
    def test_invalid_phone(self, client, delivery, phone):
        response = client.post("/api/send-otp", json={"phoneNumber": phone})
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Please provide a valid Indian mobile number"
        assert delivery.sent == []

    def test_missing_phone(self, client):
        response = client.post("/api/send-otp", json={})
        assert response.status_code == 422
        assert "phoneNumber" in response.json()["errors"]

    def test_delivery_failure_is_generic(self, client, delivery):
        delivery.fail = True
        response = client.post("/api/send-otp", json={"phoneNumber": PHONE})
        assert response.status_code == 502
        body = response.json()
        assert body["message"] == "Failed to send OTP. Please try again later."
        assert "provider down" not in response.text


class TestVerifyOTP:
    """Tests for /api/verify-otp."""

    def test_verify_success(self, client):
        sent = _send(client)
        response = client.post(
            "/api/verify-otp", json={"sessionId": sent["sessionId"], "otpCode": sent["otpCode"]}
        )
        assert response.status_code == 200
        assert response.json()["phoneNumber"] == CANONICAL_PHONE

    def test_wrong_code_reports_remaining_attempts(self, client):
        sent = _send(client)
        response = client.post(
            "/api/verify-otp",
            json={"sessionId": sent["sessionId"], "otpCode": _wrong_code(sent["otpCode"])},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Invalid OTP. 2 attempts remaining."
        assert body["remaining_attempts"] == 2

    def test_three_wrong_codes(self, client):
        sent = _send(client)
        payload = {"sessionId": sent["sessionId"], "otpCode": _wrong_code(sent["otpCode"])}

        statuses = [client.post("/api/verify-otp", json=payload).status_code for _ in range(3)]
        assert statuses == [400, 400, 429]

        payload["otpCode"] = sent["otpCode"]
        assert client.post("/api/verify-otp", json=payload).status_code == 404

    def test_second_verify_conflicts(self, client):
        sent = _send(client)
        payload = {"sessionId": sent["sessionId"], "otpCode": sent["otpCode"]}
        assert client.post("/api/verify-otp", json=payload).status_code == 200

        response = client.post("/api/verify-otp", json=payload)
        assert response.status_code == 409

    def test_unknown_session(self, client):
        response = client.post("/api/verify-otp", json={"sessionId": "a" * 64, "otpCode": "123456"})
        assert response.status_code == 404
        assert response.json()["message"] == "Invalid or expired session. Please request a new OTP."

    @pytest.mark.parametrize("otp_code", ["12345", "1234567", "12a456"])
    def test_malformed_code(self, client, otp_code):
        response = client.post("/api/verify-otp", json={"sessionId": "a" * 64, "otpCode": otp_code})
        assert response.status_code == 422


class TestResendOTP:
    """Tests for /api/resend-otp."""

    def test_resend_replaces_session(self, client, delivery):
        first = _send(client)
        response = client.post(
            "/api/resend-otp", json={"phoneNumber": PHONE, "sessionId": first["sessionId"]}
        )
        assert response.status_code == 200
        second = response.json()
        assert second["message"] == "OTP resent successfully"
        assert second["sessionId"] != first["sessionId"]
        assert len(delivery.sent) == 2

        old = client.post(
            "/api/verify-otp", json={"sessionId": first["sessionId"], "otpCode": first["otpCode"]}
        )
        assert old.status_code == 404


class TestSubmitForm:
    """Tests for /api/submit-form."""

    def _form(self, session_id, phone=PHONE):
        return {
            "name": "  Asha Rao ",
            "email": "Asha@Example.IN",
            "phoneNumber": phone,
            "sessionId": session_id,
        }

    def test_submit_success(self, client, form_relay):
        session_id = _verified_session(client)
        response = client.post("/api/submit-form", json=self._form(session_id))
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Form submitted successfully"
        assert body["submittedAt"] == "2024-01-01T12:05:00+00:00"
        form_relay.submit.assert_awaited_once_with("Asha Rao", "asha@example.in", CANONICAL_PHONE)

        again = client.post("/api/submit-form", json=self._form(session_id))
        assert again.status_code == 404

    def test_submit_unverified(self, client):
        sent = _send(client)
        response = client.post("/api/submit-form", json=self._form(sent["sessionId"]))
        assert response.status_code == 400

    def test_submit_phone_mismatch(self, client):
        session_id = _verified_session(client)
        response = client.post("/api/submit-form", json=self._form(session_id, phone="9123456780"))
        assert response.status_code == 403

    def test_relay_failure_is_generic_and_keeps_session(self, client, form_relay):
        session_id = _verified_session(client)
        form_relay.submit = AsyncMock(side_effect=RelayFailedError("HTTP 503 from crm", status=503))

        response = client.post("/api/submit-form", json=self._form(session_id))
        assert response.status_code == 502
        assert response.json()["message"] == "Failed to submit form. Please try again."
        assert "crm" not in response.text

        form_relay.submit = AsyncMock(return_value=datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert client.post("/api/submit-form", json=self._form(session_id)).status_code == 200

    @pytest.mark.parametrize(
        "field,value",
        [("name", "A"), ("name", "x" * 101), ("email", "not-an-email")],
    )
    def test_invalid_fields(self, client, field, value):
        form = self._form("a" * 64)
        form[field] = value
        response = client.post("/api/submit-form", json=form)
        assert response.status_code == 422
        assert field in response.json()["errors"]


class TestSessionView:
    """Tests for /api/session/{session_id}."""

    def test_view_is_masked(self, client):
        sent = _send(client)
        response = client.get(f"/api/session/{sent['sessionId']}")
        assert response.status_code == 200
        session = response.json()["session"]
        assert session["phoneNumber"] == "+91******3210"
        assert session["verified"] is False
        assert session["attempts"] == 0
        assert sent["otpCode"] not in response.text

    def test_view_unknown(self, client):
        assert client.get(f"/api/session/{'b' * 64}").status_code == 404


class TestMiddleware:
    """Tests for response headers added by middleware."""

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "Content-Security-Policy" in response.headers
        assert "Strict-Transport-Security" not in response.headers

    def test_request_id_generated(self, client):
        response = client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 36

    def test_request_id_propagated(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-12345678"})
        assert response.headers["X-Request-ID"] == "req-12345678"

    def test_invalid_request_id_replaced(self, client):
        response = client.get("/health", headers={"X-Request-ID": "bad id!"})
        assert response.headers["X-Request-ID"] != "bad id!"

    def test_cors_preflight(self, client):
        response = client.options(
            "/api/send-otp",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


class TestRateLimiting:
    """Tests for per-client rate limits."""

    def test_otp_requests_limited(self, delivery, form_relay, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "true")
        monkeypatch.setenv("OTP_RATE_LIMIT", "5/15minutes")
        reset_settings()
        client = TestClient(
            create_app(run_security_validation=False, delivery=delivery, form_relay=form_relay)
        )

        statuses = [
            client.post("/api/send-otp", json={"phoneNumber": PHONE}).status_code
            for _ in range(6)
        ]

        assert statuses == [200] * 5 + [429]
        response = client.post("/api/resend-otp", json={"phoneNumber": PHONE})
        assert response.status_code == 429
        assert response.json()["message"] == "Too many OTP requests. Please try again later."
        assert len(delivery.sent) == 5

    def test_send_and_resend_share_budget(self, delivery, form_relay, monkeypatch):
        """Test that resend requests count against the same budget as send requests."""
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "true")
        monkeypatch.setenv("OTP_RATE_LIMIT", "5/15minutes")
        reset_settings()
        client = TestClient(
            create_app(run_security_validation=False, delivery=delivery, form_relay=form_relay)
        )

        statuses = [
            client.post("/api/send-otp", json={"phoneNumber": PHONE}).status_code
            for _ in range(3)
        ]
        statuses += [
            client.post("/api/resend-otp", json={"phoneNumber": PHONE}).status_code
            for _ in range(2)
        ]
        assert statuses == [200] * 5

        response = client.post("/api/resend-otp", json={"phoneNumber": PHONE})
        assert response.status_code == 429
        assert response.json()["message"] == "Too many OTP requests. Please try again later."
        assert len(delivery.sent) == 5

    def test_general_limit_is_separate(self, delivery, form_relay, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "true")
        monkeypatch.setenv("OTP_RATE_LIMIT", "1/15minutes")
        reset_settings()
        client = TestClient(
            create_app(run_security_validation=False, delivery=delivery, form_relay=form_relay)
        )

        assert client.post("/api/send-otp", json={"phoneNumber": PHONE}).status_code == 200
        assert client.post("/api/send-otp", json={"phoneNumber": PHONE}).status_code == 429
        assert client.get(f"/api/session/{'b' * 64}").status_code == 404
