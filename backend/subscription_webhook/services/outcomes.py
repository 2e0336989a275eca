"""
Result types returned by each processing stage.

A stage returns either its value or a ``Failure``. Every outcome carries the
HTTP status the webhook answers with; non-2xx invites PayPal to retry.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Outcome:
    status_code: int
    message: str


@dataclass(frozen=True)
class Processed(Outcome):
    status_code: int = 200
    message: str = "Webhook processed successfully."


@dataclass(frozen=True)
class Failure(Outcome):
    pass


@dataclass(frozen=True)
class MethodNotAllowed(Failure):
    status_code: int = 405
    message: str = "Method Not Allowed"


@dataclass(frozen=True)
class ValidationError(Failure):
    status_code: int = 400
    message: str = "Verification headers missing."


@dataclass(frozen=True)
class AuthenticityError(Failure):
    status_code: int = 400
    message: str = "Webhook verification failed."


@dataclass(frozen=True)
class VerificationError(Failure):
    status_code: int = 500
    message: str = "Error verifying webhook."


@dataclass(frozen=True)
class AttributionGap(Failure):
    status_code: int = 200
    message: str = "Event received but missing user identifier."


@dataclass(frozen=True)
class UnhandledEvent(Failure):
    status_code: int = 200
    message: str = "Unhandled event type."


@dataclass(frozen=True)
class PersistenceError(Failure):
    status_code: int = 500
    message: str = "Error updating database."
