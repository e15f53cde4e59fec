"""Tests for the remote analysis endpoints."""

import base64
from dataclasses import replace

from fastapi.testclient import TestClient

from nutrisnap.api.app import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_analyze_text_returns_estimate(container, oracle_client) -> None:
    client = TestClient(create_app(container))

    response = client.post("/api/analyze/text", json={"description": "avocado toast"})

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Avocado toast"
    assert data["confidence"] == 100
    assert "avocado toast" in oracle_client.calls[0]["prompt"]


def test_analyze_image_accepts_data_url(container, oracle_client) -> None:
    client = TestClient(create_app(container))
    encoded = base64.b64encode(PNG_BYTES).decode()

    response = client.post(
        "/api/analyze/image", json={"image": f"data:image/png;base64,{encoded}"}
    )

    assert response.status_code == 200
    assert oracle_client.calls[0]["image_data_url"] == (
        f"data:image/png;base64,{encoded}"
    )


def test_analyze_image_requires_image(container, oracle_client) -> None:
    client = TestClient(create_app(container))

    missing = client.post("/api/analyze/image", json={})
    invalid = client.post("/api/analyze/image", json={"image": "@@not base64@@"})

    assert missing.status_code == 400
    assert missing.json() == {"error": "Image required"}
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "Invalid image"
    assert oracle_client.calls == []


def test_analyze_text_requires_description(container, oracle_client) -> None:
    client = TestClient(create_app(container))

    response = client.post("/api/analyze/text", json={"description": "   "})

    assert response.status_code == 400
    assert response.json() == {"error": "Description required"}
    assert oracle_client.calls == []


def test_oracle_failure_returns_500_with_details(container, oracle_client) -> None:
    oracle_client.error = RuntimeError("quota exceeded")
    client = TestClient(create_app(container))

    response = client.post("/api/analyze/text", json={"description": "pizza"})

    assert response.status_code == 500
    assert response.json() == {"error": "AI failed", "details": "quota exceeded"}


def test_missing_oracle_credential_returns_500(container) -> None:
    client = TestClient(create_app(replace(container, oracle_service=None)))

    response = client.post("/api/analyze/text", json={"description": "pizza"})

    assert response.status_code == 500
    assert response.json()["error"] == "AI failed"


def test_malformed_body_is_a_bad_request(container, oracle_client) -> None:
    client = TestClient(create_app(container))

    not_json = client.post(
        "/api/analyze/text",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    wrong_type = client.post("/api/analyze/image", json={"image": ["a", "b"]})

    assert not_json.status_code == 400
    assert not_json.json()["error"] == "Invalid request"
    assert wrong_type.status_code == 400
    assert "image" in wrong_type.json()["details"]
    assert oracle_client.calls == []
