from __future__ import annotations

import hmac
import logging
import os
import re
import secrets
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Callable, Optional

from models import OtpRecord
from utils.email_sender import send_email
from utils.email_template import OTP_SUBJECT, render_html, render_text
from utils.otp_store import OTP_TTL_SECONDS, CodeStore


logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
OTP_EXP_MIN = OTP_TTL_SECONDS // 60
DELIVERY_TIMEOUT_SECONDS = float(os.getenv("DELIVERY_TIMEOUT_SECONDS", "30"))

Sender = Callable[..., str]

# Delivery runs here so the request thread can stop waiting on a hung transport.
# Sized like FastAPI's default thread pool (40) so sends do not queue behind
# each other under normal request concurrency.
DELIVERY_WORKERS = int(os.getenv("DELIVERY_WORKERS", "40"))
_DELIVERY_POOL = ThreadPoolExecutor(max_workers=DELIVERY_WORKERS, thread_name_prefix="otp-delivery")


# -----------------------
# Errors
# -----------------------
class OtpError(RuntimeError):
    status_code = 400
    message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidInput(OtpError):
    status_code = 400
    message = "Invalid email format"


class MissingInput(InvalidInput):
    message = "Email and code are required"


class NotFound(OtpError):
    status_code = 404
    message = "Code not found or expired"


class Mismatch(OtpError):
    status_code = 400
    message = "Invalid code"


class DeliveryFailed(OtpError):
    status_code = 500
    message = "Failed to send email"


# -----------------------
# Generators
# -----------------------
def generate_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def generate_tracking_id() -> str:
    return secrets.token_hex(16)


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.fullmatch(email))


def codes_equal(a: str, b: str) -> bool:
    # Constant-time; same answer as a == b.
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


@dataclass
class VerifyResult:
    verified: bool
    email_opened: bool


class VerificationService:
    def __init__(
        self,
        store: Optional[CodeStore] = None,
        *,
        sender: Sender = send_email,
        delivery_timeout: float = DELIVERY_TIMEOUT_SECONDS,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.store = store if store is not None else CodeStore()
        self.sender = sender
        self.delivery_timeout = delivery_timeout
        self.executor = executor if executor is not None else _DELIVERY_POOL

    def issue_code(self, email: Optional[str]) -> str:
        """
        Validates the address, stores a fresh code (replacing any previous one)
        and emails it. Returns the transport's message id.

        The stored record is kept even when delivery fails.
        """
        if not email:
            raise InvalidInput("Email is required")
        if not is_valid_email(email):
            raise InvalidInput("Invalid email format")

        code = generate_code()
        tracking_id = generate_tracking_id()
        self.store.put(email, OtpRecord(code=code, tracking_id=tracking_id))
        logger.info("Issued verification code for %s", email)

        html = render_html(recipient=email, code=code, tracking_id=tracking_id, expires_minutes=OTP_EXP_MIN)
        text = render_text(code, expires_minutes=OTP_EXP_MIN)

        message_id = self._deliver(to_email=email, subject=OTP_SUBJECT, html=html, text=text)
        logger.info("Verification email sent to %s (message id %s)", email, message_id)
        return message_id

    def _deliver(self, **message) -> str:
        """
        Runs the sender on the delivery pool. The deadline covers the send
        itself; a send still queued when the deadline passes is cancelled and
        never reaches the transport.
        """
        started = threading.Event()

        def run():
            started.set()
            return self.sender(**message)

        future = self.executor.submit(run)
        to_email = message.get("to_email")

        if not started.wait(self.delivery_timeout) and future.cancel():
            logger.error("Delivery to %s not started within %ss; cancelled", to_email, self.delivery_timeout)
            raise DeliveryFailed()

        try:
            return future.result(timeout=self.delivery_timeout)
        except FutureTimeout:
            future.cancel()
            logger.error(
                "Delivery to %s timed out after %ss; the transport may still complete it",
                to_email,
                self.delivery_timeout,
            )
            raise DeliveryFailed()
        except Exception:
            future.cancel()
            logger.exception("Delivery to %s failed", to_email)
            raise DeliveryFailed()

    def verify_code(self, email: Optional[str], code: Optional[str]) -> VerifyResult:
        if not email or not code:
            raise MissingInput()

        with self.store.lock:
            record = self.store.get(email)
            if record is None:
                logger.info("Verification for %s: no outstanding code", email)
                raise NotFound()
            if not codes_equal(record.code, code):
                logger.info("Verification for %s: wrong code", email)
                raise Mismatch()
            self.store.delete(email)

        logger.info("Verification for %s succeeded (opened=%s)", email, record.opened)
        return VerifyResult(verified=True, email_opened=record.opened)

    def track_open(self, tracking_id: str) -> bool:
        hit = self.store.mark_opened(tracking_id)
        if hit:
            logger.info("Verification email opened (tracking id %s)", tracking_id)
        return hit

    def sweep(self) -> int:
        removed = self.store.sweep_expired()
        if removed:
            logger.info("Expired %d verification code(s)", removed)
        return removed


_SERVICE: Optional[VerificationService] = None


def get_verification_service() -> VerificationService:
    global _SERVICE
    if _SERVICE is None:
        _SERVICE = VerificationService()
    return _SERVICE
