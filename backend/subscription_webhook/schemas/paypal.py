from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventResource(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = Field(None, description="Subscription or sale ID")
    billing_agreement_id: str | None = None
    plan_id: str | None = None
    custom_id: str | None = Field(None, description="User ID set at signup")


class WebhookEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = Field(None, description="PayPal event ID")
    event_type: str = Field(..., description="Event type / name")
    resource: EventResource = Field(default_factory=EventResource)


class VerificationRequest(BaseModel):
    """Body of PayPal's verify-webhook-signature call."""

    auth_algo: str
    cert_url: str
    transmission_id: str
    transmission_sig: str
    transmission_time: str
    webhook_id: str
    webhook_event: dict[str, Any]
