"""
Integration tests for the complete account lifecycle.

Runs the real application (lifespan included) on in-memory storage and
the console notifier, and drives it through HTTP only. OTPs are read
back from the repository, as a user would read them from their inbox.
"""

import dataclasses
import logging
from collections.abc import Generator

import jwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from otpgate.api.main import create_app
from otpgate.config.settings import Settings
from otpgate.domain.exceptions import DeliveryFailure
from otpgate.domain.messages import Message

SECRET = "integration-secret-key-0123456789abcdef"
EMAIL = "asha@example.com"


@pytest.fixture
def app() -> FastAPI:
    return create_app(
        Settings(
            _env_file=None,
            storage_backend="memory",
            email_backend="console",
            jwt_secret=SECRET,
        )
    )


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as client:
        yield client


def current_otp(app: FastAPI, email: str = EMAIL) -> str | None:
    return app.state.repository.get(email).otp


def approve(app: FastAPI, email: str = EMAIL) -> None:
    """Stand-in for the out-of-band admin approval."""
    repository = app.state.repository
    repository.put(dataclasses.replace(repository.get(email), approved_by_admin=True))


def register(client: TestClient, email: str = EMAIL) -> None:
    response = client.post("/register", json={"name": "Asha", "email": email})
    assert response.status_code == 200


class TestLiveness:
    def test_root(self, client: TestClient) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == "otpgate backend is running"


class TestFullLifecycle:
    def test_register_verify_login_logout(self, app: FastAPI, client: TestClient) -> None:
        register(client)

        response = client.post("/verify-otp", json={"email": EMAIL, "otp": current_otp(app)})
        assert response.status_code == 200
        assert response.json() == {"message": "Email verified successfully."}

        approve(app)

        response = client.post("/login", json={"email": EMAIL})
        assert response.status_code == 200
        assert response.json() == {"message": "OTP sent for login."}

        response = client.post("/verify-login", json={"email": EMAIL, "otp": current_otp(app)})
        assert response.status_code == 200
        body = response.json()
        assert body["email"] == EMAIL
        assert body["name"] == "Asha"
        assert body["user_type"] == "intern"
        claims = jwt.decode(body["token"], SECRET, algorithms=["HS256"])
        assert claims["id"] == body["id"]
        assert claims["email"] == EMAIL

        response = client.post("/logout", json={"email": EMAIL})
        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully."}

        users = client.get("/users").json()["users"]
        assert len(users) == 1
        user = users[0]
        assert user["status"] == "ACTIVE"
        assert [r["action"] for r in user["login_records"]] == ["login", "logout"]
        assert user["last_login_at"] is not None
        assert "otp" not in user

    def test_otps_are_logged_by_console_notifier(
        self, app: FastAPI, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="otpgate.adapters.smtp.console"):
            register(client)

        assert "[REGISTRATION_OTP]" in caplog.text
        assert current_otp(app) in caplog.text


class TestRegistration:
    def test_duplicate_email_rejected(self, client: TestClient) -> None:
        register(client)

        response = client.post("/register", json={"name": "Other", "email": EMAIL})

        assert response.status_code == 400
        assert response.json() == {"detail": "Email already registered"}

    def test_new_account_is_registered(self, client: TestClient) -> None:
        register(client)

        user = client.get("/users").json()["users"][0]
        assert user["status"] == "REGISTERED"
        assert user["email_verified"] is False
        assert user["approved_by_admin"] is False

    def test_invalid_email_rejected(self, client: TestClient) -> None:
        response = client.post("/register", json={"name": "Asha", "email": "nope"})
        assert response.status_code == 400

    def test_client_cannot_self_approve(self, client: TestClient) -> None:
        response = client.post(
            "/register",
            json={"name": "Asha", "email": EMAIL, "approved_by_admin": True},
        )
        assert response.status_code == 400
        assert client.get("/users").json()["users"] == []


class TestVerification:
    def test_wrong_code_rejected(self, app: FastAPI, client: TestClient) -> None:
        register(client)
        wrong = "000000" if current_otp(app) != "000000" else "111111"

        response = client.post("/verify-otp", json={"email": EMAIL, "otp": wrong})

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid OTP"}

    def test_unknown_email_looks_like_wrong_code(self, client: TestClient) -> None:
        response = client.post("/verify-otp", json={"email": "ghost@example.com", "otp": "123456"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid OTP"}

    def test_replaying_registration_code_is_harmless(
        self, app: FastAPI, client: TestClient
    ) -> None:
        register(client)
        otp = current_otp(app)

        first = client.post("/verify-otp", json={"email": EMAIL, "otp": otp})
        second = client.post("/verify-otp", json={"email": EMAIL, "otp": otp})

        assert first.status_code == 200
        assert second.status_code == 200


class TestLoginGate:
    def test_unverified_account_cannot_log_in(self, client: TestClient) -> None:
        register(client)

        response = client.post("/login", json={"email": EMAIL})

        assert response.status_code == 403
        assert response.json() == {"detail": "Email not verified"}

    def test_unapproved_account_cannot_log_in(self, app: FastAPI, client: TestClient) -> None:
        register(client)
        client.post("/verify-otp", json={"email": EMAIL, "otp": current_otp(app)})

        response = client.post("/login", json={"email": EMAIL})

        assert response.status_code == 403
        assert response.json() == {"detail": "Not approved by admin"}

    def test_unknown_email(self, client: TestClient) -> None:
        response = client.post("/login", json={"email": "ghost@example.com"})

        assert response.status_code == 400
        assert response.json() == {"detail": "User not found"}

    def test_registration_code_cannot_complete_login(
        self, app: FastAPI, client: TestClient
    ) -> None:
        register(client)
        registration_otp = current_otp(app)
        client.post("/verify-otp", json={"email": EMAIL, "otp": registration_otp})
        approve(app)

        response = client.post("/verify-login", json={"email": EMAIL, "otp": registration_otp})

        assert response.status_code == 400

    def test_login_code_is_single_use(self, app: FastAPI, client: TestClient) -> None:
        register(client)
        client.post("/verify-otp", json={"email": EMAIL, "otp": current_otp(app)})
        approve(app)
        client.post("/login", json={"email": EMAIL})
        otp = current_otp(app)

        first = client.post("/verify-login", json={"email": EMAIL, "otp": otp})
        second = client.post("/verify-login", json={"email": EMAIL, "otp": otp})

        assert first.status_code == 200
        assert second.status_code == 400


class TestResendOtp:
    def test_resend_replaces_code(self, app: FastAPI, client: TestClient) -> None:
        register(client)
        before = app.state.repository.get(EMAIL)

        response = client.post("/resend-otp", json={"email": EMAIL})

        assert response.status_code == 200
        assert response.json() == {"message": "OTP resent successfully"}
        after = app.state.repository.get(EMAIL)
        assert after.otp is not None
        assert after.otp_issued_at >= before.otp_issued_at

    def test_resend_after_verification_rejected(self, app: FastAPI, client: TestClient) -> None:
        register(client)
        client.post("/verify-otp", json={"email": EMAIL, "otp": current_otp(app)})

        response = client.post("/resend-otp", json={"email": EMAIL})

        assert response.status_code == 400
        assert response.json() == {"detail": "Email already verified"}

    def test_resend_unknown_email(self, client: TestClient) -> None:
        response = client.post("/resend-otp", json={"email": "ghost@example.com"})

        assert response.status_code == 404
        assert response.json() == {"detail": "User with this email not found"}


class FailingNotifier:
    def send(self, recipient: str, message: Message) -> None:
        raise DeliveryFailure("smtp down")


class TestUndeliveredNotices:
    def test_login_and_logout_report_warning(self, app: FastAPI, client: TestClient) -> None:
        register(client)
        client.post("/verify-otp", json={"email": EMAIL, "otp": current_otp(app)})
        approve(app)
        client.post("/login", json={"email": EMAIL})
        otp = current_otp(app)
        app.state.notifier = FailingNotifier()

        login = client.post("/verify-login", json={"email": EMAIL, "otp": otp})
        logout = client.post("/logout", json={"email": EMAIL})

        assert login.status_code == 200
        assert login.json()["token"]
        assert login.json()["warning"] == "Notification email could not be sent"
        assert logout.status_code == 200
        assert logout.json() == {
            "message": "Logged out successfully.",
            "warning": "Notification email could not be sent",
        }
        records = client.get("/users").json()["users"][0]["login_records"]
        assert [r["action"] for r in records] == ["login", "logout"]

    def test_otp_email_failure_is_an_error(self, app: FastAPI, client: TestClient) -> None:
        app.state.notifier = FailingNotifier()

        response = client.post("/register", json={"name": "Asha", "email": EMAIL})

        assert response.status_code == 500
        assert app.state.repository.get(EMAIL) is not None


class TestLogout:
    def test_logout_unknown_email(self, client: TestClient) -> None:
        response = client.post("/logout", json={"email": "ghost@example.com"})

        assert response.status_code == 400
        assert response.json() == {"detail": "User not found"}


class TestUsers:
    def test_listed_in_registration_order(self, client: TestClient) -> None:
        register(client, "first@example.com")
        register(client, "second@example.com")

        emails = [u["email"] for u in client.get("/users").json()["users"]]

        assert emails == ["first@example.com", "second@example.com"]
