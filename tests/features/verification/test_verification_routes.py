from datetime import timedelta

import pytest

from app.features.verification.dependencies.store import get_verification_store
from app.features.verification.services.code_store import VerificationCodeStore
from app.platform.services.email import EmailDispatchError

SEND_URL = "/api/v1/auth/send-verification"
VERIFY_URL = "/api/v1/auth/verify-code"
EMAIL = "seller@example.com"
CODE = "482913"


@pytest.fixture
def store(clock) -> VerificationCodeStore:
    """Store that always issues the same code so requests can submit it."""
    return VerificationCodeStore(ttl=timedelta(minutes=10), clock=clock, code_factory=lambda: CODE)


class TestSendVerification:
    """Test suite for POST /api/v1/auth/send-verification"""

    def test_send_verification_success(self, client, store, mock_send_email):
        response = client.post(SEND_URL, json={"email": EMAIL})

        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "success"
        assert payload["message"] == "Code sent successfully"
        assert payload["data"] == {"email": EMAIL, "expires_in_minutes": 10}
        assert len(store) == 1

        mock_send_email.assert_called_once()
        kwargs = mock_send_email.call_args.kwargs
        assert kwargs["to_email"] == EMAIL
        assert kwargs["subject"] == "Email Verification Code"
        assert CODE in kwargs["body"]
        assert "10 minutes" in kwargs["body"]

    def test_send_verification_invalid_email_format(self, client, store, mock_send_email):
        response = client.post(SEND_URL, json={"email": "not-an-email"})

        assert response.status_code == 422
        payload = response.json()
        assert payload["message"] == "Validation failed"
        assert "errors" in payload["data"]
        mock_send_email.assert_not_called()
        assert len(store) == 0

    def test_send_verification_missing_email(self, client, mock_send_email):
        response = client.post(SEND_URL, json={})

        assert response.status_code == 422
        mock_send_email.assert_not_called()

    def test_send_verification_dispatch_failure(self, client, store, mock_send_email):
        mock_send_email.side_effect = EmailDispatchError("SMTP delivery failed")

        response = client.post(SEND_URL, json={"email": EMAIL})

        assert response.status_code == 500
        payload = response.json()
        assert payload["status"] == "error"
        assert payload["message"] == "Failed to send code"
        # the issued code is kept; a new request replaces it
        assert len(store) == 1

    def test_resend_replaces_previous_code(self, client, clock, mock_send_email):
        codes = iter(["111111", "222222"])
        replacement = VerificationCodeStore(clock=clock, code_factory=lambda: next(codes))
        client.app.dependency_overrides[get_verification_store] = lambda: replacement

        client.post(SEND_URL, json={"email": EMAIL})
        client.post(SEND_URL, json={"email": EMAIL})

        first = client.post(VERIFY_URL, json={"email": EMAIL, "code": "111111"})
        second = client.post(VERIFY_URL, json={"email": EMAIL, "code": "222222"})

        assert first.status_code == 400
        assert first.json()["data"] == {"outcome": "mismatch"}
        assert second.status_code == 200


class TestVerifyCode:
    """Test suite for POST /api/v1/auth/verify-code"""

    def test_verify_code_success(self, client, store, mock_send_email):
        client.post(SEND_URL, json={"email": EMAIL})

        response = client.post(VERIFY_URL, json={"email": EMAIL, "code": CODE})

        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "success"
        assert payload["message"] == "Email verified successfully!"
        assert payload["data"] == {"verified_email": EMAIL}
        assert len(store) == 0

    def test_verify_code_cannot_be_replayed(self, client, mock_send_email):
        client.post(SEND_URL, json={"email": EMAIL})
        client.post(VERIFY_URL, json={"email": EMAIL, "code": CODE})

        response = client.post(VERIFY_URL, json={"email": EMAIL, "code": CODE})

        assert response.status_code == 400
        payload = response.json()
        assert payload["message"] == "No verification code found. Please request a new code."
        assert payload["data"] == {"outcome": "not_found"}

    def test_verify_code_not_requested(self, client):
        response = client.post(VERIFY_URL, json={"email": EMAIL, "code": CODE})

        assert response.status_code == 400
        assert response.json()["data"] == {"outcome": "not_found"}

    def test_verify_code_wrong_code_allows_retry(self, client, mock_send_email):
        client.post(SEND_URL, json={"email": EMAIL})

        wrong = client.post(VERIFY_URL, json={"email": EMAIL, "code": "000000"})
        right = client.post(VERIFY_URL, json={"email": EMAIL, "code": CODE})

        assert wrong.status_code == 400
        assert wrong.json()["message"] == "Your OTP is wrong. Please try again."
        assert wrong.json()["data"] == {"outcome": "mismatch"}
        assert right.status_code == 200

    def test_verify_code_expired(self, client, clock, store, mock_send_email):
        client.post(SEND_URL, json={"email": EMAIL})
        clock.advance(10 * 60 * 1000 + 1)

        response = client.post(VERIFY_URL, json={"email": EMAIL, "code": CODE})
        again = client.post(VERIFY_URL, json={"email": EMAIL, "code": CODE})

        assert response.status_code == 400
        payload = response.json()
        assert payload["message"] == "Verification code has expired. Please request a new code."
        assert payload["data"] == {"outcome": "expired"}
        assert again.json()["data"] == {"outcome": "not_found"}
        assert len(store) == 0

    def test_verify_code_sweeps_other_expired_codes(self, client, clock, store, mock_send_email):
        store.issue("abandoned@example.com")
        clock.advance(10 * 60 * 1000 + 1)
        client.post(SEND_URL, json={"email": EMAIL})

        response = client.post(VERIFY_URL, json={"email": EMAIL, "code": "000000"})

        assert response.status_code == 400
        assert response.json()["data"] == {"outcome": "mismatch"}
        # only the live, retryable code is left
        assert len(store) == 1

    @pytest.mark.parametrize("code", ["12345", "1234567", ""])
    def test_verify_code_invalid_format(self, client, store, mock_send_email, code):
        client.post(SEND_URL, json={"email": EMAIL})

        response = client.post(VERIFY_URL, json={"email": EMAIL, "code": code})

        assert response.status_code == 400
        payload = response.json()
        assert payload["message"] == "Verification code must be exactly 6 characters."
        assert payload["data"] == {"outcome": "invalid_format"}
        assert len(store) == 1

    def test_verify_code_missing_fields(self, client):
        response = client.post(VERIFY_URL, json={"email": EMAIL})

        assert response.status_code == 422
        assert response.json()["status"] == "error"

    def test_verify_code_leaves_other_codes_when_sweep_disabled(
        self, client, clock, store, test_settings, mock_send_email
    ):
        test_settings.VERIFICATION_SWEEP_ON_VERIFY = False
        store.issue("abandoned@example.com")
        clock.advance(10 * 60 * 1000 + 1)
        client.post(SEND_URL, json={"email": EMAIL})

        response = client.post(VERIFY_URL, json={"email": EMAIL, "code": CODE})

        assert response.status_code == 200
        # nothing swept the abandoned code; only the periodic sweeper would
        assert len(store) == 1
        assert store.sweep_expired() == 1
