"""
Shared helpers for the test modules.
"""

from typing import List

from fastapi.testclient import TestClient

from appbase_backend.notifications import EmailMessage, EmailService

DEFAULT_PASSWORD = "correct-horse-battery"


class RecordingEmailService(EmailService):
    """Keeps outgoing messages in memory; can be told to fail."""

    def __init__(self, fail: bool = False):
        super().__init__("tests@appbase.local")
        self.sent: List[EmailMessage] = []
        self.fail = fail

    async def send_email(self, message: EmailMessage) -> None:
        if self.fail:
            raise ConnectionError("SMTP relay unreachable")
        self.sent.append(message)


def login(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> str:
    """Log in through the API and return the signed token."""
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
