import base64

PIXEL = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")


def _issue(client, store, email="a@b.com"):
    r = client.post("/api/send-verification-code", json={"email": email})
    assert r.status_code == 200
    return store.get(email)


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "OK"
    assert body["message"]
    assert body["timestamp"].endswith("Z")


def test_send_code(client, store, sender):
    r = client.post("/api/send-verification-code", json={"email": "a@b.com"})
    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "message": "Code sent successfully!",
        "data": {"messageId": "<msg-1@test>"},
    }
    assert store.get("a@b.com") is not None
    # The code only ever travels by email.
    assert store.get("a@b.com").code not in r.text


def test_send_code_missing_email(client, store):
    r = client.post("/api/send-verification-code", json={})
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Email is required"}
    assert len(store) == 0


def test_send_code_invalid_email(client, store, sender):
    r = client.post("/api/send-verification-code", json={"email": "not-an-email"})
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Invalid email format"}
    assert len(store) == 0
    assert sender.sent == []


def test_send_code_delivery_failure(client, store, sender):
    sender.fail = OSError("connection refused")
    r = client.post("/api/send-verification-code", json={"email": "a@b.com"})
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "Failed to send email"}
    assert store.get("a@b.com") is not None


def test_malformed_body(client):
    r = client.post(
        "/api/send-verification-code",
        content="not json",
        headers={"content-type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_verify_code(client, store):
    rec = _issue(client, store)
    r = client.post("/api/verify-code", json={"email": "a@b.com", "code": rec.code})
    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "message": "Code verified successfully!",
        "data": {"verified": True, "emailOpened": False},
    }

    again = client.post("/api/verify-code", json={"email": "a@b.com", "code": rec.code})
    assert again.status_code == 404
    assert again.json() == {"success": False, "message": "Code not found or expired"}


def test_verify_wrong_code(client, store):
    rec = _issue(client, store)
    wrong = "100000" if rec.code != "100000" else "100001"

    r = client.post("/api/verify-code", json={"email": "a@b.com", "code": wrong})
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Invalid code"}

    r = client.post("/api/verify-code", json={"email": "a@b.com", "code": rec.code})
    assert r.status_code == 200


def test_verify_missing_fields(client):
    r = client.post("/api/verify-code", json={"email": "a@b.com"})
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Email and code are required"}


def test_verify_after_expiry(client, store, clock):
    rec = _issue(client, store)
    clock.advance(600)
    r = client.post("/api/verify-code", json={"email": "a@b.com", "code": rec.code})
    assert r.status_code == 404


def test_track_unknown_id(client, store):
    rec = _issue(client, store)
    r = client.get("/api/track/ffffffffffffffffffffffffffffffff")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/gif"
    assert r.headers["cache-control"] == "no-store, no-cache, must-revalidate, private"
    assert r.content == PIXEL
    assert store.get("a@b.com").opened is False
    assert rec.opened is False


def test_track_known_id_marks_opened(client, store):
    rec = _issue(client, store)

    r = client.get(f"/api/track/{rec.tracking_id}")
    assert r.status_code == 200
    assert r.content == PIXEL
    assert store.get("a@b.com").opened is True

    # Same image, no further change.
    r = client.get(f"/api/track/{rec.tracking_id}")
    assert r.content == PIXEL
    assert store.get("a@b.com").opened is True

    r = client.post("/api/verify-code", json={"email": "a@b.com", "code": rec.code})
    assert r.json()["data"] == {"verified": True, "emailOpened": True}


def test_send_code_without_body(client, store):
    r = client.post("/api/send-verification-code")
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Email is required"}
    assert len(store) == 0


def test_verify_without_body(client):
    r = client.post("/api/verify-code")
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Email and code are required"}
