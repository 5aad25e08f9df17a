# tests/test_checkout.py
import json
import logging

import httpx
from fastapi.testclient import TestClient

from conftest import RecordingProvider, make_settings
from levelup.core import PreferenceIn
from levelup.dependencies import get_payments_client
from levelup.main import create_app
from levelup.payments import build_line_items, build_preference_payload, extract_init_point

ORDER = {"title": "Compra Level Up PC", "price": 389990, "quantity": 1}
INIT_POINT = "https://sandbox.mercadopago.test/checkout/v1/redirect?pref_id=123"


def _client_with(tmp_path, provider, **overrides):
    app = create_app(make_settings(tmp_path, **overrides))
    app.dependency_overrides[get_payments_client] = lambda: provider.client()
    return TestClient(app)


def test_missing_access_token(tmp_path, seed_file):
    provider = RecordingProvider(body={"init_point": INIT_POINT})
    with _client_with(tmp_path, provider, MERCADOPAGO_ACCESS_TOKEN="") as c:
        r = c.post("/api/create_preference", json=ORDER)
    assert r.status_code == 400
    assert r.json() == {"error": "MERCADOPAGO_ACCESS_TOKEN is not configured"}
    assert provider.requests == []


def test_production_token_rejected_outside_production(tmp_path, seed_file):
    provider = RecordingProvider(body={"init_point": INIT_POINT})
    with _client_with(tmp_path, provider, MERCADOPAGO_ACCESS_TOKEN="APP_USR-1234-live") as c:
        r = c.post("/api/create_preference", json=ORDER)
        assert r.status_code == 400
        assert r.json()["code"] == "USE_TEST_ACCESS_TOKEN"
        # checked before the body is even validated
        r = c.post("/api/create_preference", json={"title": "x"})
        assert r.json()["code"] == "USE_TEST_ACCESS_TOKEN"
    assert provider.requests == []


def test_production_token_allowed_in_production(tmp_path, seed_file):
    provider = RecordingProvider(body={"init_point": INIT_POINT})
    with _client_with(tmp_path, provider, MERCADOPAGO_ACCESS_TOKEN="APP_USR-1234-live", APP_ENV="production") as c:
        r = c.post("/api/create_preference", json=ORDER)
    assert r.status_code == 200
    assert len(provider.requests) == 1


def test_missing_quantity_is_a_validation_error(tmp_path, seed_file):
    provider = RecordingProvider(body={"init_point": INIT_POINT})
    with _client_with(tmp_path, provider) as c:
        r = c.post("/api/create_preference", json={"title": "PC", "price": 1000})
    assert r.status_code == 400
    assert "body.quantity" in r.json()["fields"]
    assert provider.requests == []


def test_creates_preference_with_single_synthesized_item(tmp_path, seed_file):
    provider = RecordingProvider(body={"id": "123", "init_point": INIT_POINT})
    with _client_with(tmp_path, provider) as c:
        r = c.post("/api/create_preference", json={**ORDER, "quantity": 2})
    assert r.status_code == 200
    assert r.json() == {"init_point": INIT_POINT}

    sent = provider.requests[0]
    assert sent.method == "POST"
    assert sent.url.path == "/checkout/preferences"
    assert sent.headers["Authorization"] == "Bearer TEST-1234567890-abcdef"
    body = json.loads(sent.content)
    assert body["items"] == [{"title": "Compra Level Up PC", "unit_price": 389990.0, "quantity": 2}]
    assert body["statement_descriptor"] == "LEVELUPPC"
    assert body["external_reference"].startswith("ORDER-")
    assert body["back_urls"] == {
        "success": "https://shop.example.com/success.html",
        "failure": "https://shop.example.com/failure.html",
        "pending": "https://shop.example.com/pending.html",
    }
    assert "payer" not in body


def test_cart_items_and_payer_are_forwarded(tmp_path, seed_file):
    provider = RecordingProvider(body={"init_point": INIT_POINT})
    order = {
        **ORDER,
        "payerEmail": "buyer@example.com",
        "items": [
            {"id": 1, "title": "Ryzen 7", "price": 389990, "quantity": 1, "image": "/img/r7.jpg"},
            {"id": 5, "price": 119990},
        ],
    }
    with _client_with(tmp_path, provider) as c:
        r = c.post("/api/create_preference", json=order)
    assert r.status_code == 200
    body = json.loads(provider.requests[0].content)
    assert body["items"] == [
        {"title": "Ryzen 7", "unit_price": 389990.0, "quantity": 1},
        {"title": "Item", "unit_price": 119990.0, "quantity": 1},
    ]
    assert body["payer"] == {"email": "buyer@example.com"}


def test_null_and_zero_item_fields_take_defaults(tmp_path, seed_file):
    provider = RecordingProvider(body={"init_point": INIT_POINT})
    order = {
        **ORDER,
        "items": [
            {"title": None, "price": None, "quantity": None},
            {"title": "", "price": 59990, "quantity": 0},
        ],
    }
    with _client_with(tmp_path, provider) as c:
        r = c.post("/api/create_preference", json=order)
    assert r.status_code == 200
    body = json.loads(provider.requests[0].content)
    assert body["items"] == [
        {"title": "Item", "unit_price": 0.0, "quantity": 1},
        {"title": "Item", "unit_price": 59990.0, "quantity": 1},
    ]


def test_debug_mode_logs_preference_payload(tmp_path, seed_file, caplog):
    caplog.set_level(logging.DEBUG, logger="levelup")
    provider = RecordingProvider(body={"init_point": INIT_POINT})
    with _client_with(tmp_path, provider, DEBUG_MP=True) as c:
        r = c.post("/api/create_preference", json=ORDER)
    assert r.status_code == 200
    assert "Mercado Pago preference payload" in caplog.text
    assert "LEVELUPPC" in caplog.text


def test_payload_not_logged_without_debug(tmp_path, seed_file, caplog):
    caplog.set_level(logging.DEBUG, logger="levelup")
    provider = RecordingProvider(body={"init_point": INIT_POINT})
    with _client_with(tmp_path, provider) as c:
        c.post("/api/create_preference", json=ORDER)
    assert "Mercado Pago preference payload" not in caplog.text


def test_wrapped_init_point_is_accepted(tmp_path, seed_file):
    provider = RecordingProvider(body={"body": {"init_point": INIT_POINT}})
    with _client_with(tmp_path, provider) as c:
        r = c.post("/api/create_preference", json=ORDER)
    assert r.json() == {"init_point": INIT_POINT}


def test_missing_init_point_is_a_server_error(tmp_path, seed_file):
    provider = RecordingProvider(body={"id": "123"})
    with _client_with(tmp_path, provider) as c:
        r = c.post("/api/create_preference", json=ORDER)
    assert r.status_code == 500
    assert r.json() == {"error": "Preference created without init_point"}


def test_provider_error_is_relayed(tmp_path, seed_file):
    provider = RecordingProvider(status=401, body={"message": "invalid access token", "status": 401})
    with _client_with(tmp_path, provider) as c:
        r = c.post("/api/create_preference", json=ORDER)
    assert r.status_code == 401
    assert r.json()["error"] == "invalid access token"
    assert r.json()["details"]["status"] == 401


def test_network_failure_is_a_server_error(tmp_path, seed_file):
    provider = RecordingProvider(error=httpx.ConnectError)
    with _client_with(tmp_path, provider) as c:
        r = c.post("/api/create_preference", json=ORDER)
    assert r.status_code == 500
    assert "payment provider" in r.json()["error"]


def test_extract_init_point_shapes():
    assert extract_init_point({"init_point": "a"}) == "a"
    assert extract_init_point({"body": {"init_point": "b"}}) == "b"
    assert extract_init_point({"status": 201, "response": {"init_point": "c"}}) == "c"
    assert extract_init_point({"body": {}}) is None
    assert extract_init_point(None) is None


def test_payload_builders():
    req = PreferenceIn(title="PC", price=10, quantity=3, items=[])
    assert build_line_items(req) == [{"title": "PC", "unit_price": 10.0, "quantity": 3}]

    payload = build_preference_payload(req, "http://localhost:3001/")
    assert payload["back_urls"]["pending"] == "http://localhost:3001/pending.html"
    assert int(payload["external_reference"].split("-", 1)[1]) > 0
