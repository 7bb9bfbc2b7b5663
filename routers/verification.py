from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from utils.otp_service import VerificationService, get_verification_service


router = APIRouter(tags=["verification"])


# Fields and the body itself stay optional here (no body reads as {}); the
# service owns the "required" messages.
class SendCodeIn(BaseModel):
    email: Optional[str] = None


class VerifyCodeIn(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = None


@router.post("/send-verification-code")
def send_verification_code(
    payload: Optional[SendCodeIn] = None,
    service: VerificationService = Depends(get_verification_service),
):
    payload = payload or SendCodeIn()
    message_id = service.issue_code(payload.email)
    return {
        "success": True,
        "message": "Code sent successfully!",
        "data": {"messageId": message_id},
    }


@router.post("/verify-code")
def verify_code(
    payload: Optional[VerifyCodeIn] = None,
    service: VerificationService = Depends(get_verification_service),
):
    payload = payload or VerifyCodeIn()
    result = service.verify_code(payload.email, payload.code)
    return {
        "success": True,
        "message": "Code verified successfully!",
        "data": {"verified": result.verified, "emailOpened": result.email_opened},
    }
