"""API test fixtures: app with overridden DB/storage/auth and a fake decoder."""
import time
from unittest.mock import patch

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from fitcompare.api.deps import get_identity_verifier, get_storage
from fitcompare.api.main import create_app
from fitcompare.auth.identity import IdentityVerifier
from fitcompare.db.engine import get_session
from fitcompare.fit.decoder import FitParseError, FitRecord

TEST_JWT_KEY = "integration-test-signing-key-0123456789"

# Uploaded bytes → what the "decoder" returns for them. Anything else is
# treated as a corrupt file.
RIDES = {
    b"ride-a": [FitRecord(power=200, cadence=90, heart_rate=140, speed=36.0, altitude=100.0)] * 60,
    b"ride-b": [FitRecord(power=300, cadence=95, heart_rate=160, speed=30.0, altitude=200.0)] * 40,
    b"ride-c": [FitRecord(power=150, speed=250.0, enhanced_altitude=12000.0)] * 10,
}


def fake_decode(data: bytes):
    if data not in RIDES:
        raise FitParseError("not a FIT file")
    return RIDES[data]


def fit_upload(name: str, data: bytes):
    return ("files", (name, data, "application/octet-stream"))


@pytest.fixture(name="make_token")
def make_token_fixture():
    def make(sub: str = "rider-1", email: str = "rider@example.com", email_verified: bool = True):
        claims = {
            "sub": sub,
            "email": email,
            "email_verified": email_verified,
            "exp": int(time.time()) + 3600,
        }
        return jwt.encode(claims, TEST_JWT_KEY, algorithm="HS256")
    return make


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(make_token):
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture(name="other_headers")
def other_headers_fixture(make_token):
    return {"Authorization": f"Bearer {make_token(sub='rider-2', email='other@example.com')}"}


@pytest.fixture(name="decoder")
def decoder_fixture():
    with patch(
        "fitcompare.services.comparison.decode_fit_bytes", side_effect=fake_decode
    ) as mock:
        yield mock


@pytest.fixture(name="client")
def client_fixture(engine, storage, decoder):
    app = create_app()

    def override_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_identity_verifier] = lambda: IdentityVerifier(key=TEST_JWT_KEY)
    with TestClient(app) as c:
        yield c


@pytest.fixture(name="upload_dataset")
def upload_dataset_fixture(client, auth_headers):
    """Upload files as rider-1 and return the created dataset JSON."""
    def upload(*files, name: str = "Hill repeats", headers=None):
        resp = client.post(
            "/datasets/",
            files=[fit_upload(n, d) for n, d in files],
            data={"name": name},
            headers=headers or auth_headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()
    return upload
