import json
import logging
from collections.abc import Mapping

import pydantic
from sqlalchemy.orm import Session

from subscription_webhook.core.config import PayPalConfig
from subscription_webhook.db import crud
from subscription_webhook.schemas.paypal import VerificationRequest, WebhookEvent
from subscription_webhook.services import dispatch, outcomes
from subscription_webhook.services.paypal_verify import PayPalAPIError, PayPalClient

logger = logging.getLogger(__name__)

# request header -> verification request field
VERIFICATION_HEADERS = {
    "paypal-transmission-id": "transmission_id",
    "paypal-transmission-time": "transmission_time",
    "paypal-cert-url": "cert_url",
    "paypal-auth-algo": "auth_algo",
    "paypal-transmission-sig": "transmission_sig",
}


class WebhookProcessor:
    """
    Turns one PayPal webhook delivery into at most one user update.

    Each stage returns its value or an outcomes.Failure; the first failure
    ends processing and its status code is the response.
    """

    def __init__(self, config: PayPalConfig, paypal: PayPalClient, db: Session):
        self.config = config
        self.paypal = paypal
        self.db = db

    def process(
        self, method: str, headers: Mapping[str, str], raw_body: bytes
    ) -> outcomes.Outcome:
        if method.upper() != "POST":
            logger.warning(f"Received non-POST request: {method}")
            return outcomes.MethodNotAllowed()

        verified = self.verify(headers, raw_body)
        if isinstance(verified, outcomes.Failure):
            return verified
        event = verified
        logger.info(f"Received PayPal event {event.id}: {event.event_type}")

        user_id = self.attribute(event)
        if isinstance(user_id, outcomes.Failure):
            return user_id

        update = self.mutation_for(event, user_id)
        if isinstance(update, outcomes.Failure):
            return update

        return self.apply(user_id, update)

    def verify(
        self, headers: Mapping[str, str], raw_body: bytes
    ) -> WebhookEvent | outcomes.Failure:
        lowered = {k.lower(): v for k, v in headers.items()}
        fields = {
            field: lowered.get(header)
            for header, field in VERIFICATION_HEADERS.items()
        }
        if not all(fields.values()) or not raw_body or not self.config.webhook_id:
            logger.error("Missing PayPal headers or webhook ID for verification.")
            return outcomes.ValidationError()

        try:
            body = json.loads(raw_body)
            event = WebhookEvent.model_validate(body)
        except (ValueError, pydantic.ValidationError) as e:
            logger.error(f"Invalid webhook payload: {e}")
            return outcomes.ValidationError(message="Invalid JSON payload.")

        request = VerificationRequest(
            **fields, webhook_id=self.config.webhook_id, webhook_event=body
        )
        try:
            status = self.paypal.verify_webhook_signature(request)
        except PayPalAPIError as e:
            logger.error(
                f"Error verifying webhook signature: {e} (status {e.status_code})",
                exc_info=True,
            )
            return outcomes.VerificationError()

        if status != "SUCCESS":
            logger.error(f"Webhook verification failed: {status}")
            return outcomes.AuthenticityError()

        logger.info("Webhook verification successful.")
        return event

    def attribute(self, event: WebhookEvent) -> str | outcomes.Failure:
        user_id = event.resource.custom_id
        if not user_id:
            # Acknowledge so PayPal stops retrying an event we can never attribute
            logger.error(
                f"Event type {event.event_type} received, but no custom_id found "
                f"on resource {event.resource.id}."
            )
            return outcomes.AttributionGap()
        logger.info(f"Processing event {event.event_type} for user {user_id}")
        return user_id

    def mutation_for(
        self, event: WebhookEvent, user_id: str
    ) -> dict[str, str] | outcomes.Failure:
        resource = event.resource
        action = dispatch.classify(event.event_type, resource)

        if action is dispatch.SubscriptionAction.IGNORE:
            if event.event_type == dispatch.SALE_COMPLETED:
                logger.info(
                    f"Received {event.event_type} not related to a subscription "
                    f"for user {user_id}. Ignoring."
                )
                return outcomes.UnhandledEvent(
                    message="Event received but not a subscription payment."
                )
            logger.info(f"Unhandled event type: {event.event_type}. Ignoring.")
            return outcomes.UnhandledEvent()

        update = dispatch.build_update(action, resource, self.config.plans)
        subscription_ref = resource.id or resource.billing_agreement_id
        if action is dispatch.SubscriptionAction.PAYMENT_FAILED:
            logger.warning(
                f"Subscription {subscription_ref} suspended or payment failed "
                f"for user {user_id}."
            )
        else:
            logger.info(
                f"Subscription {subscription_ref} for user {user_id} is now "
                f"{update['subscription.status']}."
            )
        return update

    def apply(self, user_id: str, update: dict[str, str]) -> outcomes.Outcome:
        try:
            crud.update_user_fields(self.db, user_id, update)
        except crud.StoreError as e:
            logger.error(f"Error updating user {user_id}: {e}")
            return outcomes.PersistenceError()

        logger.info(
            f"Updated user {user_id} with status {update['subscription.status']}."
        )
        return outcomes.Processed()
