# tests/conftest.py
import json
from types import SimpleNamespace

import httpx
import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict
from fastapi.testclient import TestClient

from levelup.config import Settings
from levelup.main import create_app
from levelup.payments import MercadoPagoClient

ADMIN = {"Authorization": "Bearer secret"}

SEED = {
    "products": [
        {"id": 1, "name": "Ryzen 7 7800X3D", "price": 389990, "category": "Procesadores", "brand": "AMD", "image": "/img/r7.jpg", "stock": 8},
        {"id": 2, "name": "RTX 4070 Super", "price": 689990, "category": "Tarjetas gráficas", "brand": "NVIDIA", "image": "/img/4070.jpg", "stock": 5},
        {"id": 10, "name": "Fury Beast 32GB", "price": 119990, "category": "Memorias RAM", "brand": "Kingston", "image": "", "stock": 0},
    ],
    "brands": [{"name": "AMD"}, {"name": "NVIDIA"}],
}


def make_settings(tmp_path, **overrides):
    values = {
        "ADMIN_TOKEN": "secret",
        "OPENAI_API_KEY": "",
        "MERCADOPAGO_ACCESS_TOKEN": "TEST-1234567890-abcdef",
        "MERCADOPAGO_API_URL": "https://api.mercadopago.test",
        "WEBSITE_URL": "https://shop.example.com/",
        "APP_ENV": "development",
        "DEBUG_MP": False,
        "DATA_DIR": tmp_path / "data",
        "SEED_FILES": [tmp_path / "seed.json"],
        "DIST_DIR": tmp_path / "dist",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def seed_file(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(SEED), encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path, seed_file):
    return make_settings(tmp_path)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


# ---------------------------
# Provider fakes
# ---------------------------
class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self, content=None, error=None):
        self.completions = FakeCompletions(content, error)
        self.chat = SimpleNamespace(completions=self.completions)


class RecordingProvider:
    """httpx handler that records requests and answers with a canned response."""

    def __init__(self, status=201, body=None, error=None):
        self.status = status
        self.body = body if body is not None else {}
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(f"{self.error.__name__} while calling the provider", request=request)
        return httpx.Response(self.status, json=self.body)

    def client(self, token="TEST-1234567890-abcdef"):
        return MercadoPagoClient(token, base_url="https://api.mercadopago.test",
                                 transport=httpx.MockTransport(self))


class ASGIAdapter(BaseAdapter):
    """Sends requests.Session traffic to a TestClient so SDK calls hit the app in-process."""

    def __init__(self, client: TestClient):
        super().__init__()
        self.client = client

    def send(self, request, **kwargs):
        r = self.client.request(request.method, request.url, content=request.body, headers=dict(request.headers))
        resp = requests.Response()
        resp.status_code = r.status_code
        resp.reason = r.reason_phrase
        resp.headers = CaseInsensitiveDict(r.headers)
        resp._content = r.content
        resp.encoding = r.encoding
        resp.url = request.url
        resp.request = request
        return resp

    def close(self):
        pass


def requests_session(client: TestClient) -> requests.Session:
    session = requests.Session()
    session.mount("http://testserver", ASGIAdapter(client))
    return session
