from __future__ import annotations

import os
from typing import Any, Dict

import requests


class ApiError(RuntimeError):
    pass


def _base_url() -> str:
    return os.getenv("BACKEND_URL", "http://127.0.0.1:8000").rstrip("/")


def _headers() -> Dict[str, str]:
    return {"content-type": "application/json"}


def _raise(resp: requests.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if resp.status_code >= 300:
        msg = None
        if isinstance(data, dict):
            msg = data.get("message") or data.get("detail")
        raise ApiError(msg or f"Request failed ({resp.status_code})")
    return data if isinstance(data, dict) else {}


def _post(path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    try:
        r = requests.post(
            f"{_base_url()}{path}",
            json=payload,
            headers=_headers(),
            timeout=20,
        )
    except requests.RequestException as exc:
        raise ApiError("Could not reach the server. Check your connection.") from exc
    return _raise(r)


def api_send_verification_code(*, email: str) -> Dict[str, Any]:
    return _post("/api/send-verification-code", {"email": email})


def api_verify_code(*, email: str, code: str) -> Dict[str, Any]:
    return _post("/api/verify-code", {"email": email, "code": code})
