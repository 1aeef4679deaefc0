import json

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient

from invite_api.config import Settings
from invite_api.dependencies import get_guest_limiter, get_http_transport, get_settings
from invite_api.main import create_app
from invite_api.utils.rate_limit import DailyRateLimiter
from tests.consts import TEST_API_KEY, TEST_CLIENT_EMAIL
from tests.fixtures.google import FakeGoogle


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="session")
def public_key_pem(rsa_key) -> str:
    return rsa_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


@pytest.fixture
def service_account_json(private_key_pem) -> str:
    return json.dumps({
        "type": "service_account",
        "project_id": "wedding-test",
        "client_email": TEST_CLIENT_EMAIL,
        "private_key": private_key_pem,
    })


@pytest.fixture
def test_settings(service_account_json) -> Settings:
    return Settings(
        _env_file=None,
        FUNCTIONS_API_KEY=TEST_API_KEY,
        SERVICE_ACCOUNT_JSON=service_account_json,
        GOOGLE_SERVICE_ACCOUNT_JSON="",
        SERVICE_ACCOUNT_JSON_B64="",
        GOOGLE_OAUTH_CLIENT_ID="",
        GOOGLE_OAUTH_CLIENT_SECRET="",
        GOOGLE_OAUTH_REFRESH_TOKEN="",
        GUEST_SHEET_ID="sheet-123",
        UPLOAD_FOLDER_ID="folder-uploads",
        GALLERY_FOLDER_ID="folder-gallery",
        TOKEN_CACHE_ENABLED=False,
        MAKE_UPLOADS_PUBLIC=True,
        GUEST_SEARCH_DAILY_LIMIT=5,
    )


@pytest.fixture
def fake_google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
def api_headers() -> dict[str, str]:
    return {"apikey": TEST_API_KEY, "Authorization": f"Bearer {TEST_API_KEY}"}


@pytest.fixture
def client(test_settings, fake_google):
    app = create_app()
    limiter = DailyRateLimiter(test_settings.GUEST_SEARCH_DAILY_LIMIT)
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_http_transport] = fake_google.transport
    app.dependency_overrides[get_guest_limiter] = lambda: limiter
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
