#!/usr/bin/env python3
"""
Send a sample PayPal subscription event to a running webhook service.

The transmission headers are placeholders, so a real PayPal profile answers
400 (verification failed). Point PAYPAL_*_API_BASE at a stub to exercise the
full path locally.

Usage:
    python scripts/send_sample_event.py <user_id> [--event-type TYPE] [--url URL]
"""
import argparse
import json
import sys
import uuid
from datetime import UTC, datetime

import httpx

DEFAULT_URL = "http://localhost:8000/webhooks/paypal"


def build_event(event_type: str, user_id: str, plan_id: str | None) -> dict:
    resource = {"id": f"I-{uuid.uuid4().hex[:12].upper()}", "custom_id": user_id}
    if plan_id:
        resource["plan_id"] = plan_id
    return {
        "id": f"WH-{uuid.uuid4().hex[:17].upper()}",
        "event_type": event_type,
        "resource": resource,
    }


def build_headers() -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "PAYPAL-TRANSMISSION-ID": str(uuid.uuid4()),
        "PAYPAL-TRANSMISSION-TIME": datetime.now(UTC).isoformat(),
        "PAYPAL-CERT-URL": "https://api.sandbox.paypal.com/v1/notifications/certs/CERT-sample",
        "PAYPAL-AUTH-ALGO": "SHA256withRSA",
        "PAYPAL-TRANSMISSION-SIG": "sample-signature",
    }


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("user_id", help="value placed in resource.custom_id")
    parser.add_argument("--event-type", default="BILLING.SUBSCRIPTION.ACTIVATED")
    parser.add_argument("--plan-id", default=None)
    parser.add_argument("--url", default=DEFAULT_URL)
    args = parser.parse_args()

    event = build_event(args.event_type, args.user_id, args.plan_id)
    body = json.dumps(event)
    try:
        r = httpx.post(args.url, content=body, headers=build_headers(), timeout=10)
    except httpx.HTTPError as exc:
        print(f"Error: request failed: {exc}", file=sys.stderr)
        return 1

    print(f"{r.status_code} {r.text}")
    return 0 if r.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
