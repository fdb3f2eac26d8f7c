import base64

import pytest
import requests
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app
from app.routes.predict import get_image_stager, get_prediction_dispatcher
from app.services.image_stager import ImageStager

TOKEN = "r8_test_token"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(64))


class FakeUploader:
    def __init__(self, url="https://files.example.com/staged.png"):
        self.url = url
        self.calls = []

    def upload(self, data, content_type, filename):
        self.calls.append((data, content_type, filename))
        return self.url


class FakeDispatcher:
    def __init__(self, prediction=None, error=None):
        self.prediction = prediction or {"id": "pred-123", "status": "starting"}
        self.error = error
        self.calls = []

    def create_prediction(self, payload):
        self.calls.append(payload)
        if self.error is not None:
            raise self.error
        return self.prediction


def make_response(status_code, body=b"", content_type="application/json"):
    response = requests.Response()
    response.status_code = status_code
    response._content = body if isinstance(body, bytes) else body.encode()
    response.headers["Content-Type"] = content_type
    return response


@pytest.fixture
def png_data_url():
    return "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


@pytest.fixture
def settings():
    return Settings(replicate_api_token=TOKEN, allowed_origin="https://proxy-demo.web.app")


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


def build_client(settings, uploader, dispatcher):
    app = create_app(settings)
    app.dependency_overrides[get_image_stager] = lambda: ImageStager(uploader)
    app.dependency_overrides[get_prediction_dispatcher] = lambda: dispatcher
    return TestClient(app)


@pytest.fixture
def client(settings, uploader, dispatcher):
    return build_client(settings, uploader, dispatcher)
