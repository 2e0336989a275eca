import logging

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from subscription_webhook.core.config import PayPalConfig, get_paypal_config, get_settings
from subscription_webhook.core.logging import configure_logging
from subscription_webhook.db.session import SessionLocal
from subscription_webhook.middleware.body_size import BodySizeLimitMiddleware
from subscription_webhook.services.paypal_verify import PayPalClient
from subscription_webhook.services.processor import WebhookProcessor

settings = get_settings()

app = FastAPI(
    title="Subscription Webhook Service",
    description="Applies PayPal subscription lifecycle events to user records",
    version="1.0.0",
)

app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)

logger = logging.getLogger(__name__)

_paypal_client: PayPalClient | None = None


@app.on_event("startup")
async def startup():
    configure_logging(settings.log_level)
    config = get_paypal_config()
    logger.info(f"Using PayPal {config.profile.value} profile at {config.api_base}")
    if not config.webhook_id:
        logger.warning("No PayPal webhook ID configured; deliveries will be rejected")


@app.on_event("shutdown")
async def shutdown():
    global _paypal_client
    if _paypal_client is not None:
        _paypal_client.close()
        _paypal_client = None


# ---------- dependencies ----------
def db_session():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_paypal_client(
    config: PayPalConfig = Depends(get_paypal_config),
) -> PayPalClient:
    # Shared so the OAuth token is reused across deliveries
    global _paypal_client
    if _paypal_client is None:
        _paypal_client = PayPalClient(config)
    return _paypal_client


def get_processor(
    config: PayPalConfig = Depends(get_paypal_config),
    paypal: PayPalClient = Depends(get_paypal_client),
    db: Session = Depends(db_session),
) -> WebhookProcessor:
    return WebhookProcessor(config, paypal, db)


@app.get("/health", include_in_schema=False)
async def health(config: PayPalConfig = Depends(get_paypal_config)):
    return {
        "status": "ok",
        "environment": settings.environment,
        "profile": config.profile.value,
    }


# ---------- webhook ----------
@app.api_route(
    "/webhooks/paypal",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
)
async def paypal_webhook(
    request: Request,
    processor: WebhookProcessor = Depends(get_processor),
):
    raw = await request.body()
    outcome = await run_in_threadpool(
        processor.process, request.method, request.headers, raw
    )
    return PlainTextResponse(outcome.message, status_code=outcome.status_code)
