import json
import logging
import os
from typing import Iterator
from unittest.mock import patch

import httpx
import pytest
import respx
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Set test environment variables
os.environ.update(
    {
        "DATABASE_URL": "sqlite+pysqlite:///:memory:",
        "ENVIRONMENT": "development",
        "PAYPAL_CLIENT_ID": "live_client",
        "PAYPAL_CLIENT_SECRET": "live_secret",
        "PAYPAL_WEBHOOK_ID": "WH-LIVE",
        "PAYPAL_SANDBOX_CLIENT_ID": "sandbox_client",
        "PAYPAL_SANDBOX_CLIENT_SECRET": "sandbox_secret",
        "PAYPAL_SANDBOX_WEBHOOK_ID": "WH-SANDBOX",
        "PAYPAL_LIVE_PLAN_MONTHLY": "P-LIVE-MONTHLY",
        "PAYPAL_LIVE_PLAN_YEARLY": "P-LIVE-YEARLY",
        "PAYPAL_LIVE_PLAN_TRIAL": "P-LIVE-TRIAL",
        "PAYPAL_SANDBOX_PLAN_MONTHLY": "P-SB-MONTHLY",
        "PAYPAL_SANDBOX_PLAN_TRIAL": "P-SB-TRIAL",
    }
)

# Import app modules after setting environment variables
from subscription_webhook.core.config import PayPalConfig, get_paypal_config
from subscription_webhook.db import crud, models
from subscription_webhook.db.session import SessionLocal, engine
from subscription_webhook.main import app, db_session, get_paypal_client
from subscription_webhook.services.paypal_verify import PayPalClient

logger = logging.getLogger(__name__)

TEST_USER_ID = "uid_123"
TOKEN_RESPONSE = {
    "access_token": "A21AA-test-token",
    "token_type": "Bearer",
    "expires_in": 32400,
}


@pytest.fixture(autouse=True)
def setup_database():
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)
    yield
    models.Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def user(db: Session) -> models.User:
    # Users come from the signup flow; tests insert them directly
    user = models.User(
        id=TEST_USER_ID,
        email="member@example.com",
        subscription_status="unknown",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def paypal_config() -> PayPalConfig:
    return get_paypal_config()


@pytest.fixture
def paypal_api(paypal_config: PayPalConfig) -> Iterator[respx.Router]:
    """Mocked PayPal REST API; verification succeeds unless a test overrides it."""
    router = respx.Router(base_url=paypal_config.api_base, assert_all_called=False)
    router.post("/v1/oauth2/token", name="token").mock(
        return_value=httpx.Response(200, json=TOKEN_RESPONSE)
    )
    router.post("/v1/notifications/verify-webhook-signature", name="verify").mock(
        return_value=httpx.Response(200, json={"verification_status": "SUCCESS"})
    )
    yield router


@pytest.fixture
def paypal_client(paypal_config: PayPalConfig, paypal_api: respx.Router):
    http = httpx.Client(
        base_url=paypal_config.api_base,
        transport=httpx.MockTransport(paypal_api.handler),
    )
    client = PayPalClient(paypal_config, http=http)
    yield client
    client.close()


@pytest.fixture
def store_spy():
    with patch.object(
        crud, "update_user_fields", wraps=crud.update_user_fields
    ) as spy:
        yield spy


@pytest.fixture
def client(db: Session, paypal_client: PayPalClient) -> Iterator[TestClient]:
    app.dependency_overrides[db_session] = lambda: db
    app.dependency_overrides[get_paypal_client] = lambda: paypal_client

    with TestClient(app) as test_client:
        logger.info("Test client created")
        yield test_client
    app.dependency_overrides.clear()


def paypal_headers(**overrides) -> dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "PAYPAL-TRANSMISSION-ID": "69cd13f0-d67a-11e5-baa3-778b53f4ae55",
        "PAYPAL-TRANSMISSION-TIME": "2026-10-19T09:00:00Z",
        "PAYPAL-CERT-URL": "https://api.sandbox.paypal.com/v1/notifications/certs/CERT-360caa42",
        "PAYPAL-AUTH-ALGO": "SHA256withRSA",
        "PAYPAL-TRANSMISSION-SIG": "lmI95Jx3Y9nhR5SJWlHVIWpg4AgFk7n9bCHSRxbrd8A9zrhdu2rMyFrmz+Zjh3s3boXB07VXCXUZy/UFzUlnGJn0wDugt7FlSvdKeIJenLRemUxYCPVoEZzg9VFNqOa48gMkvF+XTpxBeUx/kWy6B5cp7GkT2+pOowfRK7OaynuxUoKW3JcMWw272VKjLTtTAShncla7tGF+55rxyt2KNZIIqxNMJ48RDZheGU5w1npu9dZHnPgTXB9iomeVRoD8O/jhRpnKsGrDschyNdkeh81BJJMH4Ctc6lnCCquoP/GzCzz33MMsNdid7vL/NIWaCsekQpW26FpWPi/tfj8nLA==",
    }
    headers.update(overrides)
    return {k: v for k, v in headers.items() if v is not None}


def post_event(client: TestClient, event: dict, **header_overrides) -> httpx.Response:
    return client.post(
        "/webhooks/paypal",
        content=json.dumps(event),
        headers=paypal_headers(**header_overrides),
    )
