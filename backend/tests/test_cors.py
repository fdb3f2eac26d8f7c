import pytest

from app.core.config import Settings
from app.core.cors import cors_headers, resolve_allowed_origin
from conftest import build_client

SITE = "https://proxy-demo.web.app"


@pytest.mark.parametrize(
    "request_origin, configured, expected",
    [
        (SITE, SITE, SITE),
        ("https://evil.example.com", SITE, ""),
        ("http://localhost:5173", SITE, ""),
        (None, SITE, ""),
        ("http://localhost:5173", "", "http://localhost:5173"),
        ("https://localhost", "", "https://localhost"),
        ("http://127.0.0.1:8080", "", "http://127.0.0.1:8080"),
        ("https://127.0.0.1:8080", "", ""),
        ("http://localhost.evil.com", "", ""),
        ("https://example.com", "", ""),
        (None, "", ""),
    ],
)
def test_resolve_allowed_origin(request_origin, configured, expected):
    assert resolve_allowed_origin(request_origin, configured) == expected


def test_headers_without_origin_omit_allow_origin():
    headers = cors_headers("")

    assert "Access-Control-Allow-Origin" not in headers
    assert "Vary" not in headers
    assert headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
    assert headers["Access-Control-Max-Age"] == "86400"


@pytest.mark.parametrize("origin", [SITE, "https://evil.example.com", None])
def test_preflight_is_always_empty_204(client, dispatcher, origin):
    headers = {"Access-Control-Request-Method": "POST"}
    if origin:
        headers["Origin"] = origin

    response = client.options("/replicateProxy", headers=headers)

    assert response.status_code == 204
    assert response.content == b""
    assert dispatcher.calls == []


def test_allowed_origin_is_echoed_on_responses(client):
    response = client.post(
        "/replicateProxy", json={"image": "https://example.com/cat.png"}, headers={"Origin": SITE}
    )

    assert response.headers["access-control-allow-origin"] == SITE
    assert response.headers["vary"] == "Origin"


def test_unmatched_origin_gets_no_allow_origin_but_is_served(client):
    response = client.post(
        "/replicateProxy",
        json={"image": "https://example.com/cat.png"},
        headers={"Origin": "https://evil.example.com"},
    )

    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers


def test_error_responses_carry_cors_headers(uploader, dispatcher):
    client = build_client(Settings(replicate_api_token=""), uploader, dispatcher)

    response = client.post(
        "/replicateProxy", json={}, headers={"Origin": "http://localhost:3000"}
    )

    assert response.status_code == 500
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
