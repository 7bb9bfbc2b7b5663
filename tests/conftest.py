from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from main import app
from utils.otp_service import VerificationService, get_verification_service
from utils.otp_store import CodeStore


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSender:
    def __init__(self):
        self.sent = []
        self.fail = None

    def __call__(self, *, to_email, subject, html, text=None):
        if self.fail is not None:
            raise self.fail
        self.sent.append({"to_email": to_email, "subject": subject, "html": html, "text": text})
        return f"<msg-{len(self.sent)}@test>"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def store(clock):
    return CodeStore(clock=clock)


@pytest.fixture
def service(store, sender):
    return VerificationService(store, sender=sender, delivery_timeout=5)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_verification_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
