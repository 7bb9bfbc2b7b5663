from __future__ import annotations

import base64

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from utils.otp_service import VerificationService, get_verification_service


router = APIRouter(tags=["tracking"])

# 1x1 transparent GIF.
PIXEL_GIF = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")


@router.get("/track/{tracking_id}")
def track_open(
    tracking_id: str,
    service: VerificationService = Depends(get_verification_service),
):
    """
    Read-receipt pixel. Always the same image whether or not the id matched,
    so the caller learns nothing.
    """
    service.track_open(tracking_id)
    return Response(
        content=PIXEL_GIF,
        media_type="image/gif",
        headers={"Cache-Control": "no-store, no-cache, must-revalidate, private"},
    )
