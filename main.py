from __future__ import annotations

import logging
import os
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from routers.tracking import router as tracking_router
from routers.verification import router as verification_router
from utils.otp_service import OtpError, get_verification_service


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Email Verification Backend")

_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(verification_router, prefix="/api")
app.include_router(tracking_router, prefix="/api")


@app.exception_handler(OtpError)
async def _otp_error(request: Request, exc: OtpError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


@app.exception_handler(RequestValidationError)
async def _bad_body(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"success": False, "message": "Invalid request body"})


def _sweep_expired_codes() -> int:
    return get_verification_service().sweep()


@app.on_event("startup")
def _start_scheduler():
    sched = BackgroundScheduler(timezone=os.getenv("TZ", "UTC"))
    sched.add_job(
        _sweep_expired_codes,
        "interval",
        seconds=int(os.getenv("OTP_SWEEP_SECONDS", "60")),
        id="sweep_expired_codes",
        replace_existing=True,
    )
    sched.start()
    app.state._scheduler = sched
    logger.info("Expiry sweeper started")


@app.on_event("shutdown")
def _stop_scheduler():
    sched = getattr(app.state, "_scheduler", None)
    if sched:
        sched.shutdown(wait=False)


@app.get("/api/health")
def health():
    now = datetime.now(timezone.utc)
    return {
        "status": "OK",
        "message": "Server running",
        "timestamp": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }
