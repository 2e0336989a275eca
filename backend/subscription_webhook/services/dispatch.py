import enum

from subscription_webhook.core.config import PlanIds
from subscription_webhook.schemas.paypal import EventResource

UNKNOWN_PLAN = "Unknown Plan"


class SubscriptionAction(str, enum.Enum):
    ACTIVATE = "activate"
    CANCEL = "cancel"
    PAYMENT_FAILED = "payment_failed"
    IGNORE = "ignore"


SALE_COMPLETED = "PAYMENT.SALE.COMPLETED"

# PayPal event_type -> action. Unlisted types are ignored.
EVENT_ACTIONS = {
    "BILLING.SUBSCRIPTION.ACTIVATED": SubscriptionAction.ACTIVATE,
    SALE_COMPLETED: SubscriptionAction.ACTIVATE,
    "BILLING.SUBSCRIPTION.CANCELLED": SubscriptionAction.CANCEL,
    "BILLING.SUBSCRIPTION.SUSPENDED": SubscriptionAction.PAYMENT_FAILED,
    "BILLING.SUBSCRIPTION.PAYMENT.FAILED": SubscriptionAction.PAYMENT_FAILED,
}

# action -> (subscription.status, subscription.validity)
ACTION_STATES = {
    SubscriptionAction.ACTIVATE: ("active", None),
    SubscriptionAction.CANCEL: ("cancelled", "Cancelled"),
    SubscriptionAction.PAYMENT_FAILED: ("payment_failed", "Payment Issue"),
}


def is_subscription_payment(resource: EventResource) -> bool:
    # Subscription sales carry the agreement id, or an I- prefixed id
    return bool(resource.billing_agreement_id) or (resource.id or "").startswith("I-")


def classify(event_type: str, resource: EventResource) -> SubscriptionAction:
    action = EVENT_ACTIONS.get(event_type, SubscriptionAction.IGNORE)
    if event_type == SALE_COMPLETED and not is_subscription_payment(resource):
        return SubscriptionAction.IGNORE
    return action


def plan_name(plan_id: str | None, plans: PlanIds) -> str:
    if plan_id:
        if plan_id == plans.monthly:
            return "Pro Plan (Monthly)"
        if plan_id == plans.yearly:
            return "Pro Plan (Yearly)"
        if plan_id == plans.trial:
            return "Pro Trial"
    return UNKNOWN_PLAN


def build_update(
    action: SubscriptionAction, resource: EventResource, plans: PlanIds
) -> dict[str, str]:
    """Return the partial user update for ``action``, keyed by dotted path."""
    if action is SubscriptionAction.IGNORE:
        raise ValueError("Ignored events produce no update")

    status, validity = ACTION_STATES[action]
    update = {"subscription.status": status}
    if validity is not None:
        update["subscription.validity"] = validity
    if action is SubscriptionAction.ACTIVATE and resource.plan_id:
        update["subscription.plan"] = plan_name(resource.plan_id, plans)
    return update
