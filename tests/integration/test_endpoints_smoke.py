import base64
import io
import os

from fastapi.testclient import TestClient
from PIL import Image


def _make_png_bytes(w: int = 64, h: int = 32) -> bytes:
    img = Image.new("RGB", (w, h), color=(255, 255, 255))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _build_client() -> TestClient:
    """
    Mock provider only: no network, no credentials.
    The env var must be set before the settings module is first imported.
    """
    os.environ.setdefault("VLM_PROVIDER", "mock")

    from allergen_scanner.main import app

    return TestClient(app)


def test_smoke_health():
    client = _build_client()

    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers.get("X-Request-Id")


def test_smoke_analyze_with_mock_provider_returns_contract_shape():
    client = _build_client()
    b64 = base64.b64encode(_make_png_bytes()).decode("ascii")

    resp = client.post(
        "/api/analyze",
        json={"base64Image": b64, "allergens": []},
        headers={"X-Request-Id": "it-scan-1"},
    )

    assert resp.status_code == 200, resp.text
    assert resp.headers.get("X-Request-Id") == "it-scan-1"

    body = resp.json()
    assert body["productName"] == "Mock Oat Crackers"
    assert body["isSafe"] is True
    assert body["detectedAllergens"] == []


def test_smoke_upload_rejects_non_image_file():
    client = _build_client()

    resp = client.post(
        "/api/analyze/upload",
        files={"file": ("x.txt", b"hello", "text/plain")},
        data={"allergens": "[]"},
        headers={"X-Request-Id": "it-badfile-1"},
    )

    assert resp.status_code == 400
    assert resp.headers.get("X-Request-Id") == "it-badfile-1"

    body = resp.json()
    assert body["error"]["code"] == "invalid_request"
    assert body["error"]["request_id"] == "it-badfile-1"


def test_smoke_default_allergen_catalog():
    client = _build_client()

    resp = client.get("/api/allergens/defaults")

    assert resp.status_code == 200
    groups = resp.json()
    assert [g["category"] for g in groups] == ["common", "dietary", "religious", "custom"]
    assert groups[0]["title"] == "Common Allergens"
    assert "Milk" in [a["name"] for a in groups[0]["allergens"]]
    assert groups[3]["allergens"] == []
    assert all(not a["selected"] for g in groups for a in g["allergens"])


def test_smoke_history_record_wraps_response():
    client = _build_client()
    scan = {
        "productName": "Tea",
        "isSafe": None,
        "detectedAllergens": [],
        "ingredients": "Could not clearly identify all ingredients.",
        "recommendation": "Please retake a clearer photo.",
        "alternativeSuggestion": "",
        "imageUrl": "data:image/jpeg;base64,abc",
    }

    resp = client.post("/api/history/record", json=scan)

    assert resp.status_code == 200, resp.text
    record = resp.json()
    assert record["id"]
    assert isinstance(record["timestamp"], int)
    assert record["isSafe"] is None
    assert record["productName"] == "Tea"


def test_smoke_unknown_route_uses_error_schema():
    client = _build_client()

    resp = client.get("/api/nope", headers={"X-Request-Id": "it-404"})

    assert resp.status_code == 404
    assert resp.json()["error"]["request_id"] == "it-404"


def test_smoke_metrics_exposed_after_scan():
    client = _build_client()
    b64 = base64.b64encode(_make_png_bytes()).decode("ascii")
    client.post("/api/analyze", json={"base64Image": b64, "allergens": []})

    resp = client.get("/metrics")

    assert resp.status_code == 200
    assert "scan_requests_total" in resp.text
    assert "scan_verdicts_total" in resp.text
